"""YAML loader for twinstrap.yml workspace configuration."""
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from twinstrap.core.errors import ProjectConfigError
from twinstrap.models.project import WorkspaceConfig


class ConfigLoader:
    """Loads and validates a twinstrap workspace file."""

    def __init__(self, config_path: str = "twinstrap.yml"):
        self.config_path = Path(config_path).expanduser()
        self.raw_config = None
        self.config: Optional[WorkspaceConfig] = None

    def load(self) -> WorkspaceConfig:
        """Load YAML configuration from file."""
        if not self.config_path.exists():
            raise ProjectConfigError(
                f"Config file not found: {self.config_path}",
                context="Run 'twinstrap init' to create one",
            )

        try:
            with open(self.config_path) as f:
                self.raw_config = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise ProjectConfigError(f"Failed to parse {self.config_path}: {exc}") from exc

        if not self.raw_config:
            raise ProjectConfigError("Config file is empty. Run 'twinstrap init' to create a config.")
        if not isinstance(self.raw_config, dict):
            raise ProjectConfigError(f"Config root must be a mapping: {self.config_path}")

        try:
            self.config = WorkspaceConfig.model_validate(self.raw_config)
        except ValidationError as exc:
            raise ProjectConfigError(
                f"Invalid config {self.config_path}",
                context=_format_validation_error(exc),
            ) from exc

        return self.config

    def secrets_path(self, override: Optional[str] = None) -> Path:
        """Resolve the secrets file, relative paths against the config directory."""
        if self.config is None and override is None:
            raise ProjectConfigError("Configuration not loaded; call load() first.")
        raw = override or self.config.secrets_file
        path = Path(raw).expanduser()
        if not path.is_absolute() and override is None:
            path = self.config_path.parent / path
        return path


def _format_validation_error(exc: ValidationError) -> str:
    lines = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        lines.append(f"{location}: {error.get('msg')}")
    return "; ".join(lines)
