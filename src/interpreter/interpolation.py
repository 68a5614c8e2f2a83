"""Placeholder substitution for ``{{key}}`` tokens.

Single pass: substituted values are never scanned again, so a value that
itself contains ``{{...}}`` is inserted literally. Unresolved tokens stay in
the output verbatim.
"""

import re
from typing import Any, Callable

from core.json import safe_json_dumps
from .environment import Environment

TOKEN_PATTERN = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


def stringify(value: Any) -> str:
    """Render a bound value as display text."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (list, tuple, dict)):
        return safe_json_dumps(value)
    return str(value)


def find_tokens(text: str) -> list[str]:
    """Keys referenced by a string, in order of appearance."""
    return [match.group(1) for match in TOKEN_PATTERN.finditer(text)]


def interpolate(
    text: str,
    env: Environment,
    on_missing: Callable[[str], None] | None = None,
) -> str:
    """
    Substitute every ``{{key}}`` in text with its bound value.

    Args:
        text: Source string
        env: Bindings
        on_missing: Called with each key that could not be resolved

    Returns:
        The substituted string
    """
    if "{{" not in text:
        return text

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        found, value = env.lookup(key)
        if not found or value is None:
            if on_missing is not None:
                on_missing(key)
            return match.group(0)
        return stringify(value)

    return TOKEN_PATTERN.sub(replace, text)
