"""Ensure each project has an up-to-date local working copy."""
from twinstrap.core.errors import EXIT_PROVISION, RepositoryError
from twinstrap.core.logger import get_logger
from twinstrap.models.project import ProjectDescriptor
from twinstrap.services.git_manager import GitManager

logger = get_logger(__name__)


class WorkspaceProvisioner:
    """Clone-if-absent, else fast-forward pull."""

    def __init__(self, git: GitManager):
        self.git = git

    def provision(self, project: ProjectDescriptor) -> bool:
        """Bring the working copy in line with the remote.

        Returns:
            True if the repository was cloned, False if it was pulled

        Raises:
            RepositoryError: Clone/pull failed, or the path is not a working copy
        """
        path = project.local_path

        if not path.exists():
            self.git.clone_repo(project.repo, path, branch=project.branch)
            return True

        if not self.git.is_working_copy(path):
            raise RepositoryError(
                f"{path} exists but is not a git working copy",
                context=f"Move it aside or point '{project.name}.path' elsewhere",
                exit_code=EXIT_PROVISION,
            )

        logger.info(f"Working copy for {project.name} already exists at {path}")
        self.git.pull_repo(path)
        return False
