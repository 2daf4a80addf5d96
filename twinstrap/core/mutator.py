"""Apply a project's ordered scaffolding steps to its working copy.

Each file step writes a complete file, so running the steps again against
the same working copy converges to the same tree. For public-facing projects
every written file is passed through the denylist redaction and re-scanned
once all steps have run.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import TemplateError

from twinstrap.core.errors import MutationError
from twinstrap.core.logger import get_logger, log_mock
from twinstrap.models.config_set import ConfigurationSet
from twinstrap.models.project import ProjectDescriptor
from twinstrap.scaffold.env_files import format_env_file, resolve_env_entries
from twinstrap.scaffold.security import (
    denied_secrets,
    filter_public_env,
    find_leaks,
    redact_public_content,
)
from twinstrap.scaffold.templates import TemplateEngine
from twinstrap.services.npm_manager import NpmManager

logger = get_logger(__name__)


class Mutator:
    """Runs template, env-file, npm and script steps in declared order."""

    def __init__(
        self,
        npm: NpmManager,
        engine: TemplateEngine,
        config: ConfigurationSet,
        denylist: List[str],
        workspace_name: str = "",
        mock: bool = False,
    ):
        self.npm = npm
        self.engine = engine
        self.config = config
        self.denied = denied_secrets(denylist, config)
        self.workspace_name = workspace_name
        self.mock = mock

    def apply(self, project: ProjectDescriptor) -> List[Path]:
        """Apply every step of the project.

        Returns:
            Files written, in order

        Raises:
            DependencyInstallError: npm install failed
            MutationError: Any other step failed
        """
        workdir = project.workdir_path
        if not self.mock and not workdir.is_dir():
            raise MutationError(
                f"Working directory {workdir} does not exist",
                context=f"Check 'workdir' for project {project.name}",
            )

        written: List[Path] = []
        for kind, arg in project.parsed_steps():
            label = f"{kind}:{arg}" if arg else kind
            logger.info(f"[{project.name}] {label}")
            handler = getattr(self, f"_step_{kind.replace('-', '_')}")
            handler(project, arg, written)

        if project.public and not self.mock:
            self._verify_public(project, written)

        return written

    def template_context(self, project: ProjectDescriptor) -> Dict[str, Any]:
        """Render context for template bundles; secrets are never included."""
        context = {
            "project_name": self.workspace_name or project.name,
            "project": project.name,
            "branch": project.branch,
        }
        context.update(project.context)
        return context

    def _write(self, project: ProjectDescriptor, relative: str, content: str, written: List[Path]) -> None:
        path = project.workdir_path / relative
        if project.public:
            redacted = redact_public_content(content, self.denied)
            if redacted != content and path.suffix == ".json":
                self._check_json(path, redacted)
            content = redacted

        if self.mock:
            log_mock(logger, f"write {path}")
            return

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        except OSError as e:
            raise MutationError(f"Failed to write {path}", context=str(e)) from e
        written.append(path)
        logger.debug(f"Wrote {path}")

    def _check_json(self, path: Path, content: str) -> None:
        """Redaction drops whole lines; refuse to write JSON that no longer parses."""
        try:
            json.loads(content)
        except json.JSONDecodeError as e:
            raise MutationError(
                f"Removing backend-only secrets from {path} would leave invalid JSON",
                context=f"{e}. Remove the denylisted entries from the project config.",
            ) from e

    def _mkdir(self, project: ProjectDescriptor, relative: str) -> None:
        path = project.workdir_path / relative
        if self.mock:
            log_mock(logger, f"create {path}")
            return
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise MutationError(f"Failed to create {path}", context=str(e)) from e

    def _step_npm_init(self, project: ProjectDescriptor, arg: Optional[str], written: List[Path]) -> None:
        self.npm.init(project.workdir_path)

    def _step_install(self, project: ProjectDescriptor, arg: Optional[str], written: List[Path]) -> None:
        self.npm.install(project.workdir_path, project.dependencies)

    def _step_install_dev(self, project: ProjectDescriptor, arg: Optional[str], written: List[Path]) -> None:
        if not project.dev_dependencies:
            logger.warning(f"[{project.name}] install-dev step has no dev_dependencies; skipping")
            return
        self.npm.install(project.workdir_path, project.dev_dependencies, dev=True)

    def _step_scripts(self, project: ProjectDescriptor, arg: Optional[str], written: List[Path]) -> None:
        if self.mock:
            log_mock(logger, f"set scripts {', '.join(project.scripts)} in package.json")
            return
        content = self.npm.render_scripts(project.workdir_path, project.scripts)
        if content is None:
            raise MutationError(
                f"No package.json in {project.workdir_path}",
                context="Add an 'npm-init' step before 'scripts'",
            )
        self._write(project, "package.json", content, written)

    def _step_env_file(self, project: ProjectDescriptor, arg: Optional[str], written: List[Path]) -> None:
        try:
            values = resolve_env_entries(project.env, self.config, self.engine)
        except TemplateError as e:
            raise MutationError(f"Cannot render {project.env_file} for {project.name}", context=str(e)) from e

        if project.public:
            kept = filter_public_env(values, self.denied)
            for name in values.keys() - kept.keys():
                logger.warning(f"[{project.name}] dropped {name} from {project.env_file} (backend-only secret)")
            values = kept

        self._write(project, project.env_file, format_env_file(values), written)

    def _step_template(self, project: ProjectDescriptor, arg: Optional[str], written: List[Path]) -> None:
        try:
            bundle = self.engine.load_bundle(arg)
            rendered = self.engine.render_bundle(arg, self.template_context(project))
        except (FileNotFoundError, TemplateError) as e:
            raise MutationError(f"Cannot render template bundle '{arg}'", context=str(e)) from e

        for directory in bundle.directories:
            self._mkdir(project, directory)
        for item in rendered:
            self._write(project, item.path, item.content, written)

    def _step_run(self, project: ProjectDescriptor, arg: Optional[str], written: List[Path]) -> None:
        self.npm.run_script(project.workdir_path, arg)

    def _step_mkdir(self, project: ProjectDescriptor, arg: Optional[str], written: List[Path]) -> None:
        self._mkdir(project, arg)

    def _verify_public(self, project: ProjectDescriptor, written: List[Path]) -> None:
        """Re-scan every written file, including ones touched later by lint:fix or format."""
        for path in dict.fromkeys(written):
            if not path.exists():
                continue
            leaks = find_leaks(path.read_text(errors="replace"), self.denied)
            if leaks:
                raise MutationError(
                    f"Backend-only secrets found in public project file {path}",
                    context=f"Leaked: {', '.join(leaks)}",
                )
