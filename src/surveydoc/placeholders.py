"""
Placeholder scanning and preview.

Templates reference variables as {name}. Loop and condition tags
({#founders}, {/founders}, {^hasNo}, {!comment}) are control syntax, not
variables.
"""

import re
from typing import Any, List, Mapping

_PLACEHOLDER_RE = re.compile(r"\{([^{}]+)\}")
CONTROL_PREFIXES = ("#", "/", "^", "!")


def scan_placeholders(text: str) -> List[str]:
    """
    Variable names used in a template text.

    Returns:
        Sorted unique names, trimmed, control tags excluded

    Example:
        >>> scan_placeholders("{companyName} {#founders}{name}{/founders}")
        ['companyName', 'name']
    """
    names = set()
    for match in _PLACEHOLDER_RE.finditer(text or ""):
        name = match.group(1).strip()
        if name and not name.startswith(CONTROL_PREFIXES):
            names.add(name)
    return sorted(names)


def generate_preview_text(template_text: str, variables: Mapping[str, Any]) -> str:
    """
    Fill {name} placeholders for a quick preview.

    Known variables with an empty value render as [name] so gaps stand out;
    unknown placeholders are left untouched.
    """

    def replace(match: "re.Match[str]") -> str:
        name = match.group(1)
        if name not in variables or not isinstance(variables[name], str):
            return match.group(0)
        return variables[name] or f"[{name}]"

    return _PLACEHOLDER_RE.sub(replace, template_text or "")
