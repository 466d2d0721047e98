"""Placeholder substitution for notification templates.

Templates use ``{name}`` placeholders where *name* is one or more ASCII
letters, digits or underscores. Substitution is best-effort:

    render("low {level}% ({missing})", {"level": "20"})
    -> "low 20% ({missing})"

Unknown placeholders are left verbatim so that an authoring mistake stays
visible in the notification instead of silently disappearing. The output is
never re-scanned, so a field value containing ``{other}`` is emitted as-is.
"""
from __future__ import annotations

import re
from typing import Callable, Mapping

Fields = Mapping[str, str]

_PLACEHOLDER = re.compile(r"\{([A-Za-z0-9_]+)\}")


def render(
    template: str,
    fields: Fields,
    escape: Callable[[str], str] | None = None,
) -> str:
    """Substitute known ``{name}`` placeholders in *template*.

    Args:
        template: Format string with ``{name}`` placeholders.
        fields:   Values available for substitution.
        escape:   Optional transform applied to each substituted value
                  (e.g. ``shlex.quote`` for command lines). Literal text and
                  unresolved placeholders are never passed through it.
    """
    if not template:
        return ""

    def _substitute(match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in fields:
            return match.group(0)
        value = fields[key]
        return escape(value) if escape is not None else value

    return _PLACEHOLDER.sub(_substitute, template)


def placeholders(template: str) -> list[str]:
    """Return placeholder names referenced by *template*, in order of appearance."""
    return _PLACEHOLDER.findall(template or "")
