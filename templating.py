"""
templating.py
=============
Placeholder substitution for story templates.

Two placeholder spellings are supported, ``{{ path }}`` and ``${ path }``,
where ``path`` is a dotted lookup into the render context
(``suspects.a.name``). A path that does not resolve renders as an empty
string; rendering never raises for missing data.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

BRACE_PATTERN  = re.compile(r"{{\s*([\w.]+)\s*}}")
DOLLAR_PATTERN = re.compile(r"\$\{\s*([\w.]+)\s*\}")


def lookup(context: Any, path: str) -> Any:
    """
    Resolve a dotted `path` inside `context`.

    Mapping keys and list indices (``items.0``) are both followed. Returns
    None as soon as a step is missing or the current value is empty.
    """
    value = context
    for key in path.split("."):
        if not value:
            return None
        if isinstance(value, Mapping):
            value = value.get(key)
        elif isinstance(value, (list, tuple)) and key.isdigit():
            position = int(key)
            value = value[position] if position < len(value) else None
        else:
            return None
    return value


def stringify(value: Any) -> str:
    """Text form of a context value as it appears in rendered output."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (list, tuple)):
        return ",".join(stringify(item) for item in value)
    return str(value)


def render_template(template: Optional[str], context: Mapping[str, Any]) -> str:
    """Substitute every placeholder in `template` from `context`."""
    if not template:
        return ""
    output = BRACE_PATTERN.sub(lambda m: stringify(lookup(context, m.group(1))), template)
    return DOLLAR_PATTERN.sub(lambda m: stringify(lookup(context, m.group(1))), output)
