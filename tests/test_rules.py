"""Tests for generic rules and alert keys."""
from __future__ import annotations

import pytest

from alertify.alerts.rules import (
    AttributeFilter,
    Rule,
    RuleKind,
    ThresholdHigh,
    ThresholdLow,
    format_level,
)


class TestAlertKey:
    def test_battery_key(self) -> None:
        assert Rule(RuleKind.BATTERY, ThresholdLow(20.0)).alert_key() == "battery-20"

    def test_fractional_level(self) -> None:
        assert Rule(RuleKind.CPU, ThresholdHigh(92.5)).alert_key() == "cpu-92.5"

    def test_storage_key_includes_mount(self) -> None:
        rule = Rule(RuleKind.STORAGE, ThresholdHigh(95))
        assert rule.alert_key("/home") == "storage-/home-95"
        assert rule.alert_key("/home") != rule.alert_key("/data")

    def test_kinds_do_not_collide(self) -> None:
        keys = {Rule(kind, ThresholdHigh(90)).alert_key() for kind in (RuleKind.CPU, RuleKind.MEMORY)}
        assert len(keys) == 2

    def test_filter_rule_has_no_key(self) -> None:
        rule = Rule(RuleKind.DEVICE, AttributeFilter({"action": "add"}))
        with pytest.raises(TypeError):
            rule.alert_key()


class TestPredicates:
    def test_low_and_high(self) -> None:
        assert Rule(RuleKind.BATTERY, ThresholdLow(20)).triggered(19.9)
        assert not Rule(RuleKind.BATTERY, ThresholdLow(20)).triggered(20)
        assert Rule(RuleKind.CPU, ThresholdHigh(90)).triggered(90)
        assert not Rule(RuleKind.CPU, ThresholdHigh(90)).triggered(89.9)

    def test_filter_rule_matches(self) -> None:
        rule = Rule(RuleKind.DEVICE, AttributeFilter({"subsystem": "usb", "action": "add"}))
        assert rule.matches({"subsystem": "usb", "action": "add"})
        assert not rule.matches({"subsystem": "usb", "action": "remove"})

    def test_wrong_variant_raises(self) -> None:
        with pytest.raises(TypeError):
            Rule(RuleKind.DEVICE, AttributeFilter()).triggered(1.0)
        with pytest.raises(TypeError):
            Rule(RuleKind.CPU, ThresholdHigh(90)).matches({})

    def test_is_threshold(self) -> None:
        assert Rule(RuleKind.MEMORY, ThresholdHigh(90)).is_threshold
        assert not Rule(RuleKind.POWER_SUPPLY, AttributeFilter()).is_threshold


class TestDescribe:
    def test_threshold(self) -> None:
        assert Rule(RuleKind.BATTERY, ThresholdLow(15)).describe() == "< 15"
        assert Rule(RuleKind.STORAGE, ThresholdHigh(95)).describe() == ">= 95"

    def test_filter_lists_set_fields(self) -> None:
        rule = Rule(RuleKind.DEVICE, AttributeFilter({"action": "add", "driver": None, "subsystem": "usb"}))
        assert rule.describe() == "action=add, subsystem=usb"

    def test_empty_filter(self) -> None:
        assert Rule(RuleKind.POWER_SUPPLY, AttributeFilter({"name": None})).describe() == "any"


def test_format_level() -> None:
    assert format_level(20.0) == "20"
    assert format_level(95.5) == "95.5"


def test_format_level_keeps_full_precision() -> None:
    assert format_level(90.0000001) != format_level(90.0000002)
    assert Rule(RuleKind.CPU, ThresholdHigh(90.0000001)).alert_key() == "cpu-90.0000001"
