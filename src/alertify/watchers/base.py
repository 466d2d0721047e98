"""Polling loop shared by all threshold watchers.

A watcher samples its source once per interval. Each sample yields one or
more :class:`Observation` objects (storage yields one per mount point). Every
observation is checked against every rule through the shared latch, and only
then are the fired rules dispatched, so the latch lock is never held while a
notification is being shown. Sampling runs in a worker thread so that a slow
source (a hung network mount) cannot stall the other watchers.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import ClassVar

from ..alerts.dispatch import Dispatcher
from ..alerts.latch import AlertLatch, LatchDecision
from ..alerts.rules import Rule, RuleKind, format_level

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Observation:
    """One reading from a metric source.

    Attributes:
        value:     The number compared against rule levels.
        fields:    Template fields describing the reading.
        instance:  Identity of the measured object when a source has several
                   (e.g. a mount point); part of the alert key.
    """

    value: float
    fields: dict[str, str] = field(default_factory=dict)
    instance: str | None = None


class ThresholdWatcher:
    """Base class for metric pollers. Subclasses implement :meth:`sample`."""

    kind: ClassVar[RuleKind]

    def __init__(
        self,
        rules: list[Rule],
        latch: AlertLatch,
        dispatcher: Dispatcher,
        interval: float = 10.0,
    ) -> None:
        self._rules = [rule for rule in rules if rule.is_threshold]
        self._latch = latch
        self._dispatcher = dispatcher
        self._interval = interval

    @property
    def name(self) -> str:
        return self.kind.value

    @property
    def rules(self) -> list[Rule]:
        return list(self._rules)

    def sample(self) -> list[Observation]:
        """Read the source. Raise to signal a failed poll."""
        raise NotImplementedError

    def evaluate(self, observation: Observation) -> list[tuple[Rule, str]]:
        """Update the latch for every rule; return (rule, alert key) pairs that fired."""
        fired: list[tuple[Rule, str]] = []
        for rule in self._rules:
            key = rule.alert_key(observation.instance)
            decision = self._latch.check(key, rule.triggered(observation.value))
            if decision is LatchDecision.FIRE:
                fired.append((rule, key))
        return fired

    async def poll_once(self) -> int:
        """Sample, evaluate and dispatch once. Returns the number of alerts fired."""
        count = 0
        observations = await asyncio.to_thread(self.sample)
        for observation in observations:
            for rule, key in self.evaluate(observation):
                fields = {**observation.fields, "level": format_level(rule.level)}
                await self._dispatcher.dispatch(rule, fields, key)
                count += 1
        return count

    async def run(self) -> None:
        """Poll forever. Errors are logged and the next tick proceeds."""
        logger.info("%s watcher started (%d rules, every %ss)", self.name, len(self._rules), self._interval)
        while True:
            try:
                await self.poll_once()
            except Exception as exc:
                logger.warning("%s poll failed: %s", self.name, exc)
            await asyncio.sleep(self._interval)
