"""Optional-field equality matching for event rules.

A rule filter is a mapping of attribute name to expected value. ``None``
means "any value". The filter matches an event when every constrained
attribute equals the event's value (logical AND).

An attribute the event does not carry (missing key or ``None``) never causes
a mismatch: only an explicitly different value does.

    matches({"subsystem": "usb", "action": "add"},
            {"subsystem": "usb", "action": "add", "sysname": "sda"})  -> True
    matches({"subsystem": "usb"}, {"subsystem": "block"})             -> False
"""
from __future__ import annotations

from typing import Any, Mapping

Attributes = Mapping[str, Any]


def _equal(expected: Any, actual: Any) -> bool:
    if isinstance(expected, bool) or isinstance(actual, bool):
        return expected is actual
    if isinstance(expected, int) and isinstance(actual, str):
        try:
            return expected == int(actual)
        except ValueError:
            return False
    return expected == actual


def field_matches(expected: Any, actual: Any) -> bool:
    """Per-attribute check: unset on either side is a don't-care."""
    if expected is None or actual is None:
        return True
    return _equal(expected, actual)


def matches(rule_filter: Attributes, attributes: Attributes) -> bool:
    """Return True if *attributes* satisfies every constraint in *rule_filter*."""
    return all(
        field_matches(expected, attributes.get(name))
        for name, expected in rule_filter.items()
    )
