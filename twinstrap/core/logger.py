"""Console and file logging for twinstrap.

Every handler installed here carries a SecretFilter, so a value passed to
register_secrets is masked on the console and in the log file alike.
"""
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from rich.console import Console
from rich.logging import RichHandler

console = Console()

LOG_DIR = Path.home() / ".twinstrap"
LOG_FILE = LOG_DIR / "twinstrap.log"
FALLBACK_LOG_FILE = Path("/tmp/twinstrap.log")
MASK = "****"

_secrets: List[str] = []
_file_handler: Optional[logging.FileHandler] = None


def add_secret_values(registry: List[str], values: Iterable[str]) -> None:
    """Add non-empty values to registry, longest first."""
    for value in values:
        if value and value not in registry:
            registry.append(value)
    # Longest first so overlapping secrets are fully masked
    registry.sort(key=len, reverse=True)


def mask_secrets(text: str, secrets: Optional[Iterable[str]] = None) -> str:
    """Replace every secret in text with the mask.

    Uses the process-wide registry unless secrets is given.
    """
    for secret in _secrets if secrets is None else secrets:
        text = text.replace(secret, MASK)
    return text


def register_secrets(values: Iterable[str]) -> None:
    """Mask values in every twinstrap log record from now on."""
    add_secret_values(_secrets, values)


def clear_secrets() -> None:
    _secrets.clear()


class SecretFilter(logging.Filter):
    """Rewrite each record's message with registered secrets masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        if _secrets:
            record.msg = mask_secrets(record.getMessage())
            record.args = None
        return True


def log_mock(logger: logging.Logger, action: str) -> None:
    """Log an action that mock mode skips."""
    logger.info(f"MOCK: Would {action}")


def setup_file_logging(log_file: str = None, verbose: bool = False):
    """Set up file logging for bootstrap runs.

    Args:
        log_file: Path to log file (defaults to ~/.twinstrap/twinstrap.log)
        verbose: Enable debug-level logging

    Note:
        Falls back to /tmp if the home directory is not writable.
        Later calls only adjust the level of the existing handler.
    """
    global _file_handler

    level = logging.DEBUG if verbose else logging.INFO
    root_logger = logging.getLogger("twinstrap")
    root_logger.setLevel(level)

    if _file_handler is not None:
        _file_handler.setLevel(level)
        return

    target_log_file = Path(log_file).expanduser() if log_file else LOG_FILE
    try:
        target_log_file.parent.mkdir(parents=True, exist_ok=True)
    except PermissionError:
        target_log_file = FALLBACK_LOG_FILE

    _file_handler = logging.FileHandler(target_log_file)
    _file_handler.setLevel(level)
    _file_handler.addFilter(SecretFilter())
    _file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(name)s | %(levelname)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root_logger.addHandler(_file_handler)
    root_logger.info(f"twinstrap logging initialized: {target_log_file}")


def set_verbose(verbose: bool) -> None:
    """Raise every twinstrap logger to DEBUG when verbose."""
    level = logging.DEBUG if verbose else logging.INFO
    for name, logger in logging.Logger.manager.loggerDict.items():
        if name.startswith("twinstrap") and isinstance(logger, logging.Logger):
            logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with a secret-masking Rich console handler.

    Args:
        name: Logger name (typically __name__)
    """
    logger = logging.getLogger(name)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler.addFilter(SecretFilter())
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)

    return logger
