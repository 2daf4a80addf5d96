"""Commit, push and deploy mutated working copies."""
from typing import Optional

from twinstrap.core.errors import EnvRegistrationError
from twinstrap.core.logger import get_logger
from twinstrap.models.config_set import ConfigurationSet
from twinstrap.models.project import ProjectDescriptor
from twinstrap.models.report import ProjectRun, ProjectState
from twinstrap.services.git_manager import GitManager
from twinstrap.services.vercel_manager import VercelManager

logger = get_logger(__name__)


class Publisher:
    """Stages, commits and pushes; deploys projects that opt in."""

    def __init__(self, git: GitManager, config: ConfigurationSet, strict_env: bool = False):
        self.git = git
        self.config = config
        self.strict_env = strict_env

    def publish(self, project: ProjectDescriptor, message: str, run: Optional[ProjectRun] = None) -> Optional[str]:
        """Add all changes, commit when there is something to commit, then push.

        A clean working copy is still pushed so a previous interrupted run
        that committed but never pushed converges.

        Returns:
            New commit hash, or None when there was nothing to commit

        Raises:
            RepositoryError: add, commit or push failed
        """
        path = project.local_path
        self.git.add_all(path)

        commit = None
        if self.git.has_staged_changes(path):
            commit = self.git.commit(path, message)
            if run is not None:
                run.commits.append(commit or message)
                run.advance(ProjectState.COMMITTED)
        else:
            logger.info(f"[{project.name}] nothing to commit")
            if run is not None:
                run.advance(ProjectState.COMMITTED)

        self.git.push(path)
        if run is not None:
            run.advance(ProjectState.PUSHED)
        return commit

    def deploy(self, project: ProjectDescriptor, deployer: VercelManager, run: Optional[ProjectRun] = None) -> None:
        """Deploy, then forward each configured variable to the provider.

        Registration failures are collected on the run and logged as
        warnings; with strict_env the first one is raised instead.

        Raises:
            DeploymentError: The deployment itself failed
            EnvRegistrationError: A variable failed and strict_env is set
        """
        settings = project.deploy
        deployer.deploy(project.workdir_path, production=settings.target == "production")
        if run is not None:
            run.advance(ProjectState.DEPLOYED)

        for name in settings.env:
            value = self.config.get(name)
            try:
                if not value:
                    raise EnvRegistrationError(name, settings.target, detail="not defined in secrets file")
                deployer.add_env(project.workdir_path, name, value, target=settings.target)
            except EnvRegistrationError as e:
                if self.strict_env:
                    raise
                logger.warning(f"[{project.name}] {e.message}")
                if run is not None:
                    run.env_failures.append(e)
                continue
            if run is not None:
                run.registered_env.append(name)
