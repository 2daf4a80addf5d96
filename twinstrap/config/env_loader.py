"""Load the secrets file into a validated ConfigurationSet."""
from pathlib import Path
from typing import Iterable, Union

from dotenv import dotenv_values

from twinstrap.core.errors import ConfigMissing, RequiredValueMissing
from twinstrap.core.logger import get_logger
from twinstrap.models.config_set import ConfigurationSet

logger = get_logger(__name__)


def load_configuration(path: Union[str, Path], required: Iterable[str]) -> ConfigurationSet:
    """Read a .env file and check every required name is present and non-empty.

    Args:
        path: Location of the secrets file
        required: Names that must be defined, checked in order

    Returns:
        ConfigurationSet with every key found in the file

    Raises:
        ConfigMissing: The file does not exist
        RequiredValueMissing: First required name that is absent or empty
    """
    env_path = Path(path).expanduser()
    if not env_path.is_file():
        raise ConfigMissing(str(env_path))

    raw = dotenv_values(env_path)
    values = {
        key: (value or "").strip()
        for key, value in raw.items()
        if key
    }

    for name in required:
        if not values.get(name):
            raise RequiredValueMissing(name, str(env_path))

    logger.debug(f"Loaded {len(values)} variables from {env_path}")
    return ConfigurationSet(values, source=str(env_path))
