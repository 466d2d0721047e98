"""Alert rules — a trigger predicate paired with a notification template.

Every rule category shares one :class:`Rule` type. The category decides
which predicate variant the rule carries:

    battery                 ThresholdLow     fires while value <  level
    cpu / memory / storage  ThresholdHigh    fires while value >= level
    device / power_supply   AttributeFilter  fires on every matching event

Threshold rules are latched per alert key (see :mod:`alertify.alerts.latch`);
filter rules are not, since each event is already a single transition.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping, Union

from .matcher import matches


class RuleKind(str, enum.Enum):
    BATTERY = "battery"
    CPU = "cpu"
    MEMORY = "memory"
    STORAGE = "storage"
    DEVICE = "device"
    POWER_SUPPLY = "power_supply"


@dataclass(frozen=True)
class Message:
    """Notification template. All text fields may contain ``{field}`` placeholders.

    Attributes:
        urgency:  ``low``, ``normal`` or ``critical``.
        timeout:  Display time in milliseconds; None leaves it to the server.
        hints:    Hint strings in ``type:key:value`` form.
        exec:     Optional shell command run alongside the notification.
    """

    urgency: str = "normal"
    appname: str = ""
    summary: str = ""
    body: str = ""
    icon: str = ""
    timeout: int | None = None
    hints: tuple[str, ...] = ()
    exec: str | None = None


def format_level(level: float) -> str:
    """Render a threshold the way it appears in keys and templates (20.0 -> "20")."""
    text = repr(float(level))
    return text[:-2] if text.endswith(".0") else text


@dataclass(frozen=True)
class ThresholdLow:
    level: float

    def triggered(self, value: float) -> bool:
        return value < self.level


@dataclass(frozen=True)
class ThresholdHigh:
    level: float

    def triggered(self, value: float) -> bool:
        return value >= self.level


@dataclass(frozen=True)
class AttributeFilter:
    """Exact-match constraints; a None value constrains nothing."""

    constraints: Mapping[str, Any] = field(default_factory=dict)

    def matches(self, attributes: Mapping[str, Any]) -> bool:
        return matches(self.constraints, attributes)


Predicate = Union[ThresholdLow, ThresholdHigh, AttributeFilter]


@dataclass(frozen=True)
class Rule:
    kind: RuleKind
    predicate: Predicate
    message: Message = field(default_factory=Message)

    @property
    def is_threshold(self) -> bool:
        return isinstance(self.predicate, (ThresholdLow, ThresholdHigh))

    @property
    def level(self) -> float:
        if not self.is_threshold:
            raise TypeError(f"{self.kind.value} rules have no level")
        return self.predicate.level  # type: ignore[union-attr]

    def triggered(self, value: float) -> bool:
        """Evaluate a threshold rule against a numeric reading."""
        if not self.is_threshold:
            raise TypeError(f"{self.kind.value} rules are not threshold rules")
        return self.predicate.triggered(value)  # type: ignore[union-attr]

    def matches(self, attributes: Mapping[str, Any]) -> bool:
        """Evaluate a filter rule against an event's attributes."""
        if not isinstance(self.predicate, AttributeFilter):
            raise TypeError(f"{self.kind.value} rules are not filter rules")
        return self.predicate.matches(attributes)

    def alert_key(self, instance: str | None = None) -> str:
        """Latch key for this rule, e.g. ``battery-20`` or ``storage-/home-95``.

        *instance* distinguishes per-device readings of the same rule.
        """
        parts = [self.kind.value]
        if instance is not None:
            parts.append(instance)
        parts.append(format_level(self.level))
        return "-".join(parts)

    def describe(self) -> str:
        """Short human-readable trigger description."""
        if isinstance(self.predicate, ThresholdLow):
            return f"< {format_level(self.predicate.level)}"
        if isinstance(self.predicate, ThresholdHigh):
            return f">= {format_level(self.predicate.level)}"
        set_fields = {k: v for k, v in self.predicate.constraints.items() if v is not None}
        return ", ".join(f"{k}={v}" for k, v in set_fields.items()) or "any"
