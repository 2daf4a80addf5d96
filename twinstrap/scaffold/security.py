"""Denylist enforcement for files written to public-facing projects.

Backend-only secrets (AI provider keys by default) must never reach a
frontend working copy, neither by name nor by value. Every function here
takes a ``denied`` mapping of denylisted name to its secret value (the value
may be empty when the name is not configured).
"""
import re
from typing import Dict, Iterable, List, Mapping, Optional


def denied_secrets(denylist: Iterable[str], config: Mapping[str, str]) -> Dict[str, str]:
    """Map each denylisted name to its configured value ('' when absent)."""
    return {name: config.get(name, "") or "" for name in denylist}


def _name_pattern(denied: Mapping[str, str]) -> Optional[re.Pattern]:
    names = [re.escape(name) for name in denied if name]
    if not names:
        return None
    return re.compile("|".join(names), re.IGNORECASE)


def _mentions(text: str, denied: Mapping[str, str], pattern: Optional[re.Pattern]) -> bool:
    if pattern and pattern.search(text):
        return True
    return any(value and value in text for value in denied.values())


def filter_public_env(entries: Mapping[str, str], denied: Mapping[str, str]) -> Dict[str, str]:
    """Drop env entries whose name mentions a denylisted name or whose value holds a denied secret.

    Matches NEXT_PUBLIC_OPENAI_API_KEY as well as OPENAI_API_KEY.
    """
    pattern = _name_pattern(denied)
    return {
        name: value
        for name, value in entries.items()
        if not _mentions(name, denied, pattern) and not _mentions(str(value), denied, pattern)
    }


def redact_public_content(content: str, denied: Mapping[str, str]) -> str:
    """Remove every line that mentions a denylisted name or contains a denied value.

    Works line by line, so a redacted package.json may no longer parse;
    the mutator re-parses JSON after redaction.
    """
    pattern = _name_pattern(denied)
    return "".join(
        line for line in content.splitlines(keepends=True)
        if not _mentions(line, denied, pattern)
    )


def find_leaks(content: str, denied: Mapping[str, str]) -> List[str]:
    """Return the denylisted names whose name or value appears in content."""
    lowered = content.lower()
    return [
        name for name, value in denied.items()
        if name.lower() in lowered or (value and value in content)
    ]
