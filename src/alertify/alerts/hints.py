"""Notification hint codec.

A hint is written in the rule file as a single string::

    "int:volume:100"                      typed
    "string:x-dunst-stack-tag:battery"    typed
    "category:device"                     untyped key/value
    "transient"                           key only, empty value

The string is split from the right on ``:`` into at most three parts, so
the key and value may not contain colons while the type prefix is optional.
A typed hint whose value does not parse as its type, or whose prefix is not a
known type, degrades to an untyped hint rather than raising.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


class HintType(str, enum.Enum):
    BOOL = "bool"
    INT = "int"
    DOUBLE = "double"
    STRING = "string"
    UNTYPED = ""


_TYPED = {t.value: t for t in HintType if t is not HintType.UNTYPED}
_BOOL_VALUES = {"true": True, "false": False}


@dataclass(frozen=True)
class Hint:
    """A decoded hint. ``value`` keeps its textual form; see :attr:`typed_value`."""

    key: str
    value: str = ""
    type: HintType = HintType.UNTYPED

    @property
    def typed_value(self) -> bool | int | float | str:
        """The value converted to the Python type named by :attr:`type`."""
        return _convert(self.type, self.value)


def _convert(hint_type: HintType, value: str) -> bool | int | float | str:
    if hint_type is HintType.BOOL:
        return _BOOL_VALUES[value.lower()]
    if hint_type is HintType.INT:
        return int(value)
    if hint_type is HintType.DOUBLE:
        return float(value)
    return value


def decode(raw: str) -> Hint:
    """Parse a hint string into a :class:`Hint`."""
    parts = raw.rsplit(":", 2)

    if len(parts) == 3:
        type_name, key, value = parts
        hint_type = _TYPED.get(type_name)
        if hint_type is None:
            # Unknown prefix: keep the whole string as an opaque key.
            logger.debug("Unknown hint type %r in %r", type_name, raw)
            return Hint(key=raw)
        try:
            _convert(hint_type, value)
        except (KeyError, ValueError):
            logger.warning("Hint %r: %r is not a valid %s, sending untyped", key, value, type_name)
            return Hint(key=key, value=value)
        return Hint(key=key, value=value, type=hint_type)

    if len(parts) == 2:
        key, value = parts
        return Hint(key=key, value=value)

    return Hint(key=parts[0])


def encode(hint: Hint) -> str:
    """Inverse of :func:`decode` for hints whose key and value contain no colon."""
    if hint.type is not HintType.UNTYPED:
        return f"{hint.type.value}:{hint.key}:{hint.value}"
    if hint.value:
        return f"{hint.key}:{hint.value}"
    return hint.key
