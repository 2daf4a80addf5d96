"""Read-only check that every required executable is installed."""
import shutil
from typing import Dict, Iterable

from twinstrap.core.errors import CommandNotFound
from twinstrap.core.logger import get_logger

logger = get_logger(__name__)


def check_commands(commands: Iterable[str]) -> Dict[str, str]:
    """Resolve each command on PATH.

    Returns:
        Mapping of command name to resolved path

    Raises:
        CommandNotFound: First command that does not resolve
    """
    resolved: Dict[str, str] = {}
    for name in commands:
        if name in resolved:
            continue
        location = shutil.which(name)
        if not location:
            raise CommandNotFound(name)
        logger.debug(f"Found {name} at {location}")
        resolved[name] = location
    return resolved
