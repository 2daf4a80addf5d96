"""Data models for twinstrap."""

from .config_set import ConfigurationSet
from .project import (
    DEFAULT_DENYLIST,
    DEFAULT_PREFLIGHT,
    DEFAULT_REQUIRED,
    CISettings,
    DeploySettings,
    GitIdentity,
    ProjectDescriptor,
    RetryPolicy,
    WorkspaceConfig,
    parse_step,
)
from .report import BootstrapReport, ProjectRun, ProjectState

__all__ = [
    "BootstrapReport",
    "CISettings",
    "ConfigurationSet",
    "DEFAULT_DENYLIST",
    "DEFAULT_PREFLIGHT",
    "DEFAULT_REQUIRED",
    "DeploySettings",
    "GitIdentity",
    "ProjectDescriptor",
    "ProjectRun",
    "ProjectState",
    "RetryPolicy",
    "WorkspaceConfig",
    "parse_step",
]
