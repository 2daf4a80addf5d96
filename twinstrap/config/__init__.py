"""Configuration loading: workspace file and secrets file."""

from .env_loader import load_configuration
from .loader import ConfigLoader

__all__ = ["ConfigLoader", "load_configuration"]
