"""Rule file loading.

The rule file is TOML with one array of tables per category::

    [[battery]]
    level = 15
    summary = "Battery low"
    body = "{left_percent}% left"
    hints = ["int:value:{left_percent}"]

    [[device]]
    action = "add"
    subsystem = "usb"
    summary = "USB device connected"

Each entry is validated with pydantic after the category's defaults have been
applied, then converted to a generic :class:`~alertify.alerts.rules.Rule`.
A missing file is created from the bundled example.
"""
from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .alerts.rules import (
    AttributeFilter,
    Message,
    Rule,
    RuleKind,
    ThresholdHigh,
    ThresholdLow,
)
from .errors import ConfigError

logger = logging.getLogger(__name__)

EXAMPLE_CONFIG = Path(__file__).parent / "data" / "config.example.toml"

RuleSet = dict[RuleKind, list[Rule]]


class _Entry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    urgency: str = "normal"
    appname: str = ""
    summary: str = ""
    body: str = ""
    icon: str = ""
    timeout: int | None = Field(default=None, ge=0)
    hints: list[str] = Field(default_factory=list)
    exec: str | None = None

    def message(self) -> Message:
        return Message(
            urgency=self.urgency,
            appname=self.appname,
            summary=self.summary,
            body=self.body,
            icon=self.icon,
            timeout=self.timeout,
            hints=tuple(self.hints),
            exec=self.exec or None,
        )

    def predicate(self, kind: RuleKind) -> Any:
        raise NotImplementedError


class ThresholdEntry(_Entry):
    level: float

    def predicate(self, kind: RuleKind) -> Any:
        if kind is RuleKind.BATTERY:
            return ThresholdLow(self.level)
        return ThresholdHigh(self.level)


class DeviceEntry(_Entry):
    action: str = "add"
    initialized: bool | None = None
    subsystem: str | None = None
    sysname: str | None = None
    sysnum: int | None = None
    devtype: str | None = None
    driver: str | None = None

    def predicate(self, kind: RuleKind) -> Any:
        return AttributeFilter(self.model_dump(
            include={"action", "initialized", "subsystem", "sysname", "sysnum", "devtype", "driver"},
        ))


class PowerSupplyEntry(_Entry):
    name: str | None = None
    type: str | None = None
    online: str | None = None

    def predicate(self, kind: RuleKind) -> Any:
        return AttributeFilter(self.model_dump(include={"name", "type", "online"}))


_CATEGORIES: dict[RuleKind, tuple[type[_Entry], dict[str, Any]]] = {
    RuleKind.BATTERY: (ThresholdEntry, {"level": 20.0, "urgency": "critical", "appname": "Battery"}),
    RuleKind.CPU: (ThresholdEntry, {"level": 90.0, "urgency": "normal", "appname": "CPU"}),
    RuleKind.MEMORY: (ThresholdEntry, {"level": 90.0, "urgency": "normal", "appname": "Memory"}),
    RuleKind.STORAGE: (ThresholdEntry, {"level": 95.0, "urgency": "normal", "appname": "Storage"}),
    RuleKind.DEVICE: (DeviceEntry, {"urgency": "low", "appname": "Device"}),
    RuleKind.POWER_SUPPLY: (PowerSupplyEntry, {"urgency": "low", "appname": "Power supply"}),
}


def build_rule(kind: RuleKind, raw: Mapping[str, Any]) -> Rule:
    """Validate one rule-file entry (with category defaults) and build its Rule."""
    model, defaults = _CATEGORIES[kind]
    entry = model.model_validate({**defaults, **raw})
    return Rule(kind=kind, predicate=entry.predicate(kind), message=entry.message())


def parse_rules(data: Mapping[str, Any]) -> RuleSet:
    """Convert a parsed TOML document into rules grouped by category."""
    known = {kind.value for kind in RuleKind}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown rule categories: {', '.join(unknown)}")

    rules: RuleSet = {kind: [] for kind in RuleKind}
    for kind in RuleKind:
        entries = data.get(kind.value, [])
        if not isinstance(entries, list):
            raise ConfigError(f"[{kind.value}] must be an array of tables ([[{kind.value}]])")
        for index, raw in enumerate(entries):
            if not isinstance(raw, dict):
                raise ConfigError(f"Invalid {kind.value} rule #{index + 1}: expected a table")
            try:
                rules[kind].append(build_rule(kind, raw))
            except ValidationError as exc:
                raise ConfigError(f"Invalid {kind.value} rule #{index + 1}: {exc}") from exc
    return rules


def ensure_config(path: Path, force: bool = False) -> bool:
    """Write the example rule file to *path* unless it exists. Returns True if written."""
    if path.exists() and not force:
        return False
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(EXAMPLE_CONFIG.read_text(encoding="utf-8"), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to write default config to {path}: {exc}") from exc
    logger.info("Wrote default configuration to %s", path)
    return True


def load_rules(path: Path) -> RuleSet:
    """Load and validate the rule file, creating it first if missing."""
    ensure_config(path)
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except OSError as exc:
        raise ConfigError(f"Failed to read config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Failed to parse config file {path}: {exc}") from exc

    rules = parse_rules(data)
    logger.debug(
        "Loaded rules from %s: %s",
        path, ", ".join(f"{kind.value}={len(items)}" for kind, items in rules.items()),
    )
    return rules
