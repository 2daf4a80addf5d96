"""Scaffolding for bootstrapped projects: template bundles, env files, CI workflows."""

from .ci import CIWorkflowGenerator
from .security import denied_secrets, filter_public_env, find_leaks, redact_public_content
from .templates import TemplateEngine

__all__ = [
    "CIWorkflowGenerator",
    "TemplateEngine",
    "denied_secrets",
    "filter_public_env",
    "find_leaks",
    "redact_public_content",
]
