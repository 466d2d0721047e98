"""Shared pytest fixtures for alertify tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from alertify.alerts.dispatch import Dispatcher
from alertify.alerts.latch import AlertLatch
from alertify.alerts.notifier import Notification
from alertify.alerts.rules import Message, Rule, RuleKind, ThresholdHigh, ThresholdLow


class RecordingNotifier:
    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.shown: list[Notification] = []

    def show(self, notification: Notification) -> bool:
        self.shown.append(notification)
        return self.result


class RecordingExecutor:
    def __init__(self) -> None:
        self.commands: list[str] = []

    def run(self, command: str) -> None:
        self.commands.append(command)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture()
def latch() -> AlertLatch:
    return AlertLatch()


@pytest.fixture()
def dispatcher(notifier: RecordingNotifier, executor: RecordingExecutor, latch: AlertLatch):
    d = Dispatcher(notifier, executor, latch=latch, workers=1)
    yield d
    d.close()


@pytest.fixture()
def battery_rule() -> Rule:
    return Rule(
        kind=RuleKind.BATTERY,
        predicate=ThresholdLow(20.0),
        message=Message(urgency="critical", appname="Battery", summary="Battery low", body="{left_percent}% left"),
    )


@pytest.fixture()
def make_storage_rule():
    def _make(level: float = 95.0, exec: str | None = None) -> Rule:
        return Rule(
            kind=RuleKind.STORAGE,
            predicate=ThresholdHigh(level),
            message=Message(summary="{mount} almost full", body="{used_percent}% used", exec=exec),
        )

    return _make


@pytest.fixture()
def rule_file(tmp_path: Path):
    """Return a factory that writes a TOML rule file."""

    def _make(text: str, name: str = "config.toml") -> Path:
        p = tmp_path / name
        p.write_text(text, encoding="utf-8")
        return p

    return _make
