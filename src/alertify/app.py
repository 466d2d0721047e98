"""Application wiring: one latch, one dispatcher, one task per source.

Every source is probed once before any task starts. A probe failure (no
udev, unreadable metric) aborts startup with :class:`SourceError`; once
running, each task contains its own errors.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable

from .alerts.dispatch import Dispatcher
from .alerts.executor import Executor
from .alerts.latch import AlertLatch
from .alerts.notifier import Notifier
from .alerts.rules import RuleKind
from .config import Settings
from .errors import SourceError
from .loader import RuleSet
from .watchers.base import ThresholdWatcher
from .watchers.events import EventListener, UdevEventSource
from .watchers.metrics import BatteryWatcher, CpuWatcher, MemoryWatcher, StorageWatcher

logger = logging.getLogger(__name__)

_WATCHERS: dict[RuleKind, tuple[type[ThresholdWatcher], str]] = {
    RuleKind.BATTERY: (BatteryWatcher, "battery_interval"),
    RuleKind.CPU: (CpuWatcher, "cpu_interval"),
    RuleKind.MEMORY: (MemoryWatcher, "memory_interval"),
    RuleKind.STORAGE: (StorageWatcher, "storage_interval"),
}


def build_dispatcher(settings: Settings, latch: AlertLatch, notifier: Notifier, executor: Executor) -> Dispatcher:
    return Dispatcher(
        notifier,
        executor,
        latch=latch,
        policy=settings.dispatch_failure_policy,
        quote_command_fields=settings.quote_command_fields,
        workers=settings.dispatch_workers,
    )


def build_watchers(
    rules: RuleSet,
    latch: AlertLatch,
    dispatcher: Dispatcher,
    settings: Settings,
) -> list[ThresholdWatcher]:
    """Create a watcher for every threshold category that has rules."""
    watchers: list[ThresholdWatcher] = []
    for kind, (watcher_cls, interval_attr) in _WATCHERS.items():
        if not rules.get(kind):
            logger.debug("No %s rules; watcher not started", kind.value)
            continue
        watchers.append(watcher_cls(rules[kind], latch, dispatcher, interval=getattr(settings, interval_attr)))
    return watchers


def probe(watchers: list[ThresholdWatcher]) -> None:
    """Sample each watcher once; any failure is fatal."""
    for watcher in watchers:
        try:
            watcher.sample()
        except Exception as exc:
            raise SourceError(f"Cannot read {watcher.name} metrics: {exc}") from exc


async def run(
    rules: RuleSet,
    settings: Settings,
    notifier: Notifier,
    executor: Executor,
    listen_events: bool = True,
    event_source_factory: Callable[[], UdevEventSource] = UdevEventSource,
) -> None:
    """Run all watchers until cancelled."""
    latch = AlertLatch()
    dispatcher = build_dispatcher(settings, latch, notifier, executor)
    try:
        watchers = build_watchers(rules, latch, dispatcher, settings)
        probe(watchers)

        device_rules = rules.get(RuleKind.DEVICE, [])
        power_supply_rules = rules.get(RuleKind.POWER_SUPPLY, [])
        source = None
        if listen_events and (device_rules or power_supply_rules):
            source = event_source_factory()

        coros = [watcher.run() for watcher in watchers]
        if source is not None:
            listener = EventListener(device_rules, power_supply_rules, dispatcher)
            coros.append(listener.run(source.events()))

        if not coros:
            logger.warning("No rules configured; nothing to watch")
            return
        await asyncio.gather(*coros)
    finally:
        dispatcher.close()
