"""Error hierarchy for the bootstrap pipeline.

Every error carries the process exit code the CLI uses when it aborts a run:
1 configuration, 2 preflight, 3 provisioning, 4 mutation, 5 publish/deploy.
"""
from typing import Optional, Sequence


EXIT_CONFIG = 1
EXIT_PREFLIGHT = 2
EXIT_PROVISION = 3
EXIT_MUTATION = 4
EXIT_PUBLISH = 5
EXIT_INTERRUPTED = 130


class BootstrapError(Exception):
    """Base exception for all twinstrap errors."""

    exit_code: int = 1

    def __init__(self, message: str, context: Optional[str] = None, exit_code: Optional[int] = None):
        self.message = message
        self.context = context
        if exit_code is not None:
            self.exit_code = exit_code
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error message with optional context."""
        if self.context:
            return f"{self.message}\nContext: {self.context}"
        return self.message


class ConfigMissing(BootstrapError):
    """Raised when the secrets file does not exist."""

    exit_code = EXIT_CONFIG

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Secrets file not found: {path}", context="Create it or pass --env-file")


class RequiredValueMissing(BootstrapError):
    """Raised when a required variable is absent or empty."""

    exit_code = EXIT_CONFIG

    def __init__(self, name: str, path: Optional[str] = None):
        self.name = name
        context = f"Check your secrets file: {path}" if path else None
        super().__init__(f"Required variable {name} is not defined", context=context)


class ProjectConfigError(BootstrapError):
    """Raised when twinstrap.yml is missing or invalid."""

    exit_code = EXIT_CONFIG


class CommandNotFound(BootstrapError):
    """Raised when a required executable is not on PATH."""

    exit_code = EXIT_PREFLIGHT

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Command '{name}' is not installed or not on PATH")


class RepositoryError(BootstrapError):
    """Raised when clone, pull, commit or push fails."""

    exit_code = EXIT_PROVISION


class DependencyInstallError(BootstrapError):
    """Raised when npm cannot install the declared dependencies."""

    exit_code = EXIT_MUTATION


class MutationError(BootstrapError):
    """Raised when a scaffolding step (file write, render, script) fails."""

    exit_code = EXIT_MUTATION


class DeploymentError(BootstrapError):
    """Raised when the hosting provider CLI fails to deploy."""

    exit_code = EXIT_PUBLISH


class EnvRegistrationError(BootstrapError):
    """Raised when a remote environment variable cannot be registered.

    Recorded as a warning unless the run is strict.
    """

    exit_code = EXIT_PUBLISH

    def __init__(self, name: str, target: str, detail: str = ""):
        self.name = name
        self.target = target
        super().__init__(f"Failed to register {name} for {target}", context=detail or None)


class CommandError(Exception):
    """Base error for external command execution."""

    def __init__(self, args: Sequence[str], message: str):
        self.args_list = list(args)
        self.message = message
        super().__init__(message)


class CommandFailed(CommandError):
    """Raised when a command exits non-zero."""

    def __init__(self, args: Sequence[str], returncode: int, stderr: str = "", display: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        shown = display or " ".join(args)
        message = f"'{shown}' exited with status {returncode}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(args, message)


class CommandTimeout(CommandError):
    """Raised when a command exceeds its timeout."""

    def __init__(self, args: Sequence[str], timeout: float, display: str = ""):
        self.timeout = timeout
        shown = display or " ".join(args)
        super().__init__(args, f"'{shown}' timed out after {timeout:g}s")
