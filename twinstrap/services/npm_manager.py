"""npm operations inside a project working directory."""
import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from twinstrap.core.errors import CommandError, DependencyInstallError, MutationError
from twinstrap.core.logger import get_logger
from twinstrap.services.runner import CommandRunner

logger = get_logger(__name__)


class NpmManager:
    """Installs dependencies, runs package scripts and edits package.json."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def init(self, workdir: Path) -> bool:
        """Run 'npm init -y' when package.json is absent.

        Returns:
            True if a package.json was created
        """
        if (Path(workdir) / "package.json").exists():
            logger.debug(f"package.json already present in {workdir}")
            return False
        try:
            self.runner.run(["npm", "init", "-y"], cwd=workdir)
        except CommandError as e:
            raise MutationError(f"npm init failed in {workdir}", context=str(e)) from e
        return True

    def install(self, workdir: Path, packages: Iterable[str] = (), dev: bool = False) -> None:
        """Install declared packages, or everything in package.json when none are given.

        Raises:
            DependencyInstallError: npm exited non-zero or timed out
        """
        packages = list(packages)
        args: List[str] = ["npm", "install"]
        if dev:
            args.append("--save-dev")
        args.extend(packages)

        label = "dev dependencies" if dev else "dependencies"
        logger.info(f"Installing {label} in {workdir}" + (f": {' '.join(packages)}" if packages else ""))
        try:
            self.runner.run(args, cwd=workdir)
        except CommandError as e:
            raise DependencyInstallError(f"Failed to install {label} in {workdir}", context=str(e)) from e

    def run_script(self, workdir: Path, script: str) -> None:
        """Run an npm script; a non-zero exit stops the pipeline.

        Raises:
            MutationError: Script failed
        """
        logger.info(f"Running npm script '{script}' in {workdir}")
        try:
            self.runner.run(["npm", "run", script], cwd=workdir)
        except CommandError as e:
            raise MutationError(f"npm run {script} failed in {workdir}", context=str(e)) from e

    def read_package_json(self, workdir: Path) -> Optional[Dict]:
        package_file = Path(workdir) / "package.json"
        if not package_file.exists():
            return None
        try:
            return json.loads(package_file.read_text())
        except json.JSONDecodeError as e:
            raise MutationError(f"Invalid package.json in {workdir}", context=str(e)) from e

    def render_scripts(self, workdir: Path, scripts: Dict[str, str]) -> Optional[str]:
        """Return package.json text with the given scripts set, or None if there is no package.json."""
        package = self.read_package_json(workdir)
        if package is None:
            return None
        current = package.get("scripts")
        if not isinstance(current, dict):
            current = {}
        current.update(scripts)
        package["scripts"] = current
        return json.dumps(package, indent=2) + "\n"
