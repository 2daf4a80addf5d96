"""Subprocess execution shared by the git, npm and vercel managers."""
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from twinstrap.core.errors import CommandFailed, CommandNotFound, CommandTimeout
from twinstrap.core.logger import add_secret_values, get_logger, log_mock, mask_secrets, register_secrets

logger = get_logger(__name__)


@dataclass
class CommandResult:
    """Completed external command."""

    args: List[str]
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs external commands with a timeout, secret redaction and mock mode.

    In mock mode nothing is executed; every call logs what it would run and
    returns a successful empty result.
    """

    def __init__(
        self,
        mock: bool = False,
        timeout: Optional[float] = 600.0,
        secrets: Iterable[str] = (),
    ):
        self.mock = mock
        self.timeout = timeout
        self._secrets: List[str] = []
        self.add_secrets(secrets)

    def add_secrets(self, values: Iterable[str]) -> None:
        """Register values that must never appear in logs or error messages."""
        values = list(values)
        add_secret_values(self._secrets, values)
        register_secrets(values)

    def redact(self, text: str) -> str:
        return mask_secrets(text, self._secrets)

    def display(self, args: Sequence[str]) -> str:
        return self.redact(shlex.join(str(a) for a in args))

    def run(
        self,
        args: Sequence[str],
        cwd: Optional[Union[str, Path]] = None,
        input: Optional[str] = None,
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> CommandResult:
        """Run a command and capture its output.

        Raises:
            CommandNotFound: Executable missing
            CommandTimeout: Command exceeded its timeout
            CommandFailed: Non-zero exit and check=True
        """
        argv = [str(a) for a in args]
        shown = self.display(argv)
        where = f" (in {cwd})" if cwd else ""

        if self.mock:
            log_mock(logger, f"run {shown}{where}")
            return CommandResult(args=argv)

        limit = timeout if timeout is not None else self.timeout
        logger.debug(f"Running {shown}{where}")

        try:
            completed = subprocess.run(
                argv,
                cwd=str(cwd) if cwd else None,
                input=input,
                capture_output=True,
                text=True,
                timeout=limit,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandTimeout(argv, limit, display=shown) from exc
        except FileNotFoundError as exc:
            raise CommandNotFound(argv[0]) from exc

        stdout = self.redact(completed.stdout or "")
        stderr = self.redact(completed.stderr or "")
        if stdout.strip():
            logger.debug(f"Output: {stdout.strip()}")

        if check and completed.returncode != 0:
            raise CommandFailed(argv, completed.returncode, stderr, display=shown)

        return CommandResult(
            args=argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=stderr,
        )
