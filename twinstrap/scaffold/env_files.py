"""Render dotenv files from descriptor entries and the configuration set."""
from typing import Dict, Mapping

from twinstrap.scaffold.templates import TemplateEngine

_NEEDS_QUOTES = set(" \t#'\"$`\\")


def resolve_env_entries(
    entries: Mapping[str, str],
    config: Mapping[str, str],
    engine: TemplateEngine,
) -> Dict[str, str]:
    """Evaluate each entry expression ('{{ SUPABASE_URL }}', '5000') against config.

    Raises:
        jinja2.UndefinedError: An entry references a name missing from config
    """
    context = dict(config)
    return {name: engine.render_string(expr, context) for name, expr in entries.items()}


def format_env_value(value: str) -> str:
    if value and not any(ch in _NEEDS_QUOTES for ch in value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def format_env_file(values: Mapping[str, str]) -> str:
    """Serialize NAME=value lines in declaration order."""
    return "".join(f"{name}={format_env_value(value)}\n" for name, value in values.items())
