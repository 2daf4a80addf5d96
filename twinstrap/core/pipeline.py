"""The bootstrap sequence: load → preflight → per project provision, mutate, publish, CI, deploy."""
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from jinja2 import TemplateError

from twinstrap.config.env_loader import load_configuration
from twinstrap.core.errors import MutationError, ProjectConfigError
from twinstrap.core.logger import get_logger, log_mock
from twinstrap.core.mutator import Mutator
from twinstrap.core.preflight import check_commands
from twinstrap.core.provisioner import WorkspaceProvisioner
from twinstrap.core.publisher import Publisher
from twinstrap.models.config_set import ConfigurationSet
from twinstrap.models.project import ProjectDescriptor, WorkspaceConfig
from twinstrap.models.report import BootstrapReport, ProjectRun, ProjectState
from twinstrap.scaffold.ci import CIWorkflowGenerator
from twinstrap.scaffold.templates import TemplateEngine
from twinstrap.services.git_manager import GitManager
from twinstrap.services.npm_manager import NpmManager
from twinstrap.services.runner import CommandRunner
from twinstrap.services.vercel_manager import VercelManager

logger = get_logger(__name__)


class BootstrapPipeline:
    """Runs the whole bootstrap for every selected project, in order.

    Nothing touches the filesystem or network until the configuration set
    is loaded and every required command is found.
    """

    def __init__(
        self,
        workspace: WorkspaceConfig,
        secrets_path: Path,
        runner: Optional[CommandRunner] = None,
        engine: Optional[TemplateEngine] = None,
        strict_env: bool = False,
        deploy: bool = True,
        only: Optional[Sequence[str]] = None,
        deployer_factory: Optional[Callable[[CommandRunner, str], VercelManager]] = None,
    ):
        self.workspace = workspace
        self.secrets_path = Path(secrets_path)
        self.runner = runner or CommandRunner(timeout=workspace.command_timeout)
        self.engine = engine or TemplateEngine()
        self.strict_env = strict_env
        self.deploy_enabled = deploy
        self.only = list(only) if only else None
        self.deployer_factory = deployer_factory or self._make_deployer

    def projects(self) -> List[ProjectDescriptor]:
        if not self.only:
            return list(self.workspace.projects)
        unknown = [name for name in self.only if name not in {p.name for p in self.workspace.projects}]
        if unknown:
            raise ProjectConfigError(f"Unknown project(s): {', '.join(unknown)}")
        return [p for p in self.workspace.projects if p.name in self.only]

    def required_names(self) -> List[str]:
        """Required variables plus the token of every deployable project."""
        names = list(self.workspace.required)
        for project in self.projects():
            if project.deploy.enabled and self.deploy_enabled and project.deploy.token_var not in names:
                names.append(project.deploy.token_var)
        return names

    def load_configuration(self) -> ConfigurationSet:
        config = load_configuration(self.secrets_path, self.required_names())
        self.runner.add_secrets(config.secret_values())
        return config

    def preflight(self) -> None:
        check_commands(self.workspace.required_commands())
        self._validate_bundles()

    def _validate_bundles(self) -> None:
        """Fail before cloning if a step names a bundle that does not exist."""
        for project in self.projects():
            for kind, arg in project.parsed_steps():
                if kind != "template":
                    continue
                try:
                    self.engine.load_bundle(arg)
                except FileNotFoundError as e:
                    raise MutationError(str(e), context=f"Project {project.name}") from e

    def plan(self) -> List[tuple]:
        """Ordered (project, action) pairs the run would perform."""
        actions = []
        for project in self.projects():
            actions.append((project.name, f"clone or pull {project.repo} → {project.local_path}"))
            for step in project.steps:
                actions.append((project.name, step))
            actions.append((project.name, f"commit \"{project.commit_message}\" and push"))
            if project.ci.enabled:
                actions.append((project.name, f"write .github/workflows/{project.ci.workflow}, commit and push"))
            if project.deploy.enabled and self.deploy_enabled:
                actions.append((project.name, f"deploy to {project.deploy.provider} ({project.deploy.target})"))
                for name in project.deploy.env:
                    actions.append((project.name, f"register {name} ({project.deploy.target})"))
        return actions

    def run(self) -> BootstrapReport:
        """Execute the full bootstrap.

        Raises:
            BootstrapError: The first fatal failure; earlier work is kept
        """
        config = self.load_configuration()
        self.preflight()

        git = GitManager(self.runner, self.workspace.retry, self.workspace.git)
        provisioner = WorkspaceProvisioner(git)
        mutator = Mutator(
            NpmManager(self.runner),
            self.engine,
            config,
            self.workspace.denylist,
            workspace_name=self.workspace.name,
            mock=self.runner.mock,
        )
        publisher = Publisher(git, config, strict_env=self.strict_env)
        ci_generator = CIWorkflowGenerator(self.engine)

        report = BootstrapReport()
        for project in self.projects():
            run = report.add(project.name)
            logger.info(f"Bootstrapping {project.name}...")
            self._bootstrap_project(project, run, config, provisioner, mutator, publisher, ci_generator)
            if project.ci.enabled:
                for secret in project.ci.repo_secrets:
                    if secret not in report.repo_secrets:
                        report.repo_secrets.append(secret)

        return report

    def _bootstrap_project(
        self,
        project: ProjectDescriptor,
        run: ProjectRun,
        config: ConfigurationSet,
        provisioner: WorkspaceProvisioner,
        mutator: Mutator,
        publisher: Publisher,
        ci_generator: CIWorkflowGenerator,
    ) -> None:
        run.cloned = provisioner.provision(project)
        run.advance(ProjectState.SYNCED)

        mutator.apply(project)
        run.advance(ProjectState.MUTATED)

        publisher.publish(project, project.commit_message, run)

        if project.ci.enabled:
            run.ci_workflow = ci_generator.workflow_path(project)
            if self.runner.mock:
                log_mock(logger, f"write {run.ci_workflow}")
            else:
                try:
                    ci_generator.write(project)
                except (OSError, TemplateError) as e:
                    raise MutationError(f"Failed to write {run.ci_workflow}", context=str(e)) from e
                logger.info(f"[{project.name}] wrote {run.ci_workflow}")
            publisher.publish(project, project.ci.commit_message, run)

        if project.deploy.enabled and self.deploy_enabled:
            deployer = self.deployer_factory(self.runner, config[project.deploy.token_var])
            publisher.deploy(project, deployer, run)

    def _make_deployer(self, runner: CommandRunner, token: str) -> VercelManager:
        return VercelManager(runner, token, self.workspace.retry)
