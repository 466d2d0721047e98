"""Tests for the hint codec."""
from __future__ import annotations

import pytest

from alertify.alerts.hints import Hint, HintType, decode, encode


class TestDecode:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("bool:transient:true", Hint("transient", "true", HintType.BOOL)),
            ("int:volume:100", Hint("volume", "100", HintType.INT)),
            ("double:progress:0.75", Hint("progress", "0.75", HintType.DOUBLE)),
            ("string:x-dunst-stack-tag:battery.low", Hint("x-dunst-stack-tag", "battery.low", HintType.STRING)),
        ],
    )
    def test_typed(self, raw: str, expected: Hint) -> None:
        assert decode(raw) == expected

    def test_key_value(self) -> None:
        assert decode("category:device") == Hint("category", "device")

    def test_key_only(self) -> None:
        assert decode("transient") == Hint("transient", "")

    def test_invalid_int_falls_back_to_untyped(self) -> None:
        assert decode("int:volume:loud") == Hint("volume", "loud", HintType.UNTYPED)

    def test_invalid_bool_falls_back_to_untyped(self) -> None:
        assert decode("bool:transient:maybe") == Hint("transient", "maybe", HintType.UNTYPED)

    def test_unknown_type_kept_as_opaque_key(self) -> None:
        assert decode("byte:urgency:2") == Hint("byte:urgency:2", "", HintType.UNTYPED)

    def test_typed_empty_string_value(self) -> None:
        assert decode("string:tag:") == Hint("tag", "", HintType.STRING)

    def test_rendered_before_decoding(self) -> None:
        from alertify.alerts.template import render

        assert decode(render("int:value:{level}", {"level": "18"})) == Hint("value", "18", HintType.INT)


class TestTypedValue:
    def test_conversions(self) -> None:
        assert decode("bool:transient:True").typed_value is True
        assert decode("int:volume:7").typed_value == 7
        assert decode("double:progress:0.5").typed_value == 0.5
        assert decode("string:tag:7").typed_value == "7"
        assert decode("k:v").typed_value == "v"


class TestEncode:
    @pytest.mark.parametrize(
        "hint",
        [
            Hint("transient", "false", HintType.BOOL),
            Hint("volume", "-3", HintType.INT),
            Hint("progress", "1.5", HintType.DOUBLE),
            Hint("tag", "", HintType.STRING),
            Hint("category", "device"),
            Hint("resident"),
        ],
    )
    def test_round_trip(self, hint: Hint) -> None:
        assert decode(encode(hint)) == hint

    def test_untyped_key_only(self) -> None:
        assert encode(Hint("resident")) == "resident"
