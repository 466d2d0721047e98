"""Hardware event listener (udev hot-plug and power-supply changes).

Events are not latched: each udev event is already a single transition,
so every matching rule is dispatched for every matching event.

``power_supply`` ``change`` events are matched against power-supply rules
(``name``, ``type``, ``online``); everything else against device rules
(``action``, ``initialized``, ``subsystem``, ``sysname``, ``sysnum``,
``devtype``, ``driver``).
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Mapping

import pyudev

from ..alerts.dispatch import Dispatcher
from ..alerts.rules import Rule
from ..errors import SourceError

logger = logging.getLogger(__name__)

ACTIONS = frozenset({"add", "remove", "bind", "unbind", "change"})

SUBSYSTEMS = (
    "usb",
    "block",
    "net",
    "input",
    "sound",
    "drm",
    "tty",
    "power_supply",
    "video4linux",
)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


@dataclass(frozen=True)
class DeviceEvent:
    """A decoded udev event."""

    action: str
    initialized: bool = True
    subsystem: str | None = None
    sysname: str | None = None
    sysnum: int | None = None
    devtype: str | None = None
    driver: str | None = None
    seq_num: int | None = None
    syspath: str | None = None
    devpath: str | None = None
    devnode: str | None = None
    properties: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_udev(cls, device: Any) -> "DeviceEvent":
        sysnum = device.sys_number
        return cls(
            action=device.action,
            initialized=bool(device.is_initialized),
            subsystem=device.subsystem,
            sysname=device.sys_name,
            sysnum=int(sysnum) if sysnum else None,
            devtype=device.device_type,
            driver=device.driver,
            seq_num=device.sequence_number,
            syspath=device.sys_path,
            devpath=device.device_path,
            devnode=device.device_node,
            properties=dict(device.properties),
        )

    @property
    def is_power_supply_change(self) -> bool:
        return self.subsystem == "power_supply" and self.action == "change"

    def device_attributes(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "initialized": self.initialized,
            "subsystem": self.subsystem,
            "sysname": self.sysname,
            "sysnum": self.sysnum,
            "devtype": self.devtype,
            "driver": self.driver,
        }

    def device_fields(self) -> dict[str, str]:
        return {
            "action": self.action,
            "subsystem": _text(self.subsystem),
            "sysname": _text(self.sysname),
            "sysnum": _text(self.sysnum),
            "devtype": _text(self.devtype),
            "driver": _text(self.driver),
            "seq_num": _text(self.seq_num),
            "syspath": _text(self.syspath),
            "devpath": _text(self.devpath),
            "devnode": _text(self.devnode),
        }

    def power_supply_attributes(self) -> dict[str, Any]:
        return {
            "name": self.properties.get("POWER_SUPPLY_NAME"),
            "type": self.properties.get("POWER_SUPPLY_TYPE"),
            "online": self.properties.get("POWER_SUPPLY_ONLINE"),
        }

    def power_supply_fields(self) -> dict[str, str]:
        return {key: _text(value) for key, value in self.power_supply_attributes().items()}


class UdevEventSource:
    """Async stream of :class:`DeviceEvent` from the kernel's udev netlink socket.

    The monitor is opened in the constructor so that a missing udev fails
    at startup with :class:`SourceError`.
    """

    def __init__(self, subsystems: tuple[str, ...] = SUBSYSTEMS) -> None:
        try:
            context = pyudev.Context()
            monitor = pyudev.Monitor.from_netlink(context)
            for subsystem in subsystems:
                monitor.filter_by(subsystem)
            monitor.start()
        except (OSError, ImportError) as exc:
            raise SourceError(f"Cannot open udev monitor: {exc}") from exc
        self._monitor = monitor

    def _drain(self, queue: asyncio.Queue[Any]) -> None:
        try:
            while (device := self._monitor.poll(timeout=0)) is not None:
                queue.put_nowait(device)
        except OSError as exc:
            logger.warning("Failed to read udev event: %s", exc)

    async def events(self) -> AsyncIterator[DeviceEvent]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[Any] = asyncio.Queue()
        fd = self._monitor.fileno()
        loop.add_reader(fd, self._drain, queue)
        try:
            while True:
                device = await queue.get()
                try:
                    event = DeviceEvent.from_udev(device)
                except Exception as exc:
                    logger.warning("Skipping undecodable udev event: %s", exc)
                    continue
                if event.action not in ACTIONS:
                    logger.debug("Skipping udev action %r", event.action)
                    continue
                yield event
        finally:
            loop.remove_reader(fd)


class EventListener:
    """Match events against device and power-supply rules and dispatch them."""

    def __init__(
        self,
        device_rules: list[Rule],
        power_supply_rules: list[Rule],
        dispatcher: Dispatcher,
    ) -> None:
        self._device_rules = device_rules
        self._power_supply_rules = power_supply_rules
        self._dispatcher = dispatcher

    def matching(self, event: DeviceEvent) -> list[tuple[Rule, dict[str, str]]]:
        """Rules matched by *event*, each paired with its template fields."""
        if event.is_power_supply_change:
            attributes = event.power_supply_attributes()
            fields = event.power_supply_fields()
            rules = self._power_supply_rules
        else:
            attributes = event.device_attributes()
            fields = event.device_fields()
            rules = self._device_rules
        return [(rule, fields) for rule in rules if rule.matches(attributes)]

    async def handle(self, event: DeviceEvent) -> int:
        """Dispatch every rule matching *event*. Returns the number dispatched."""
        matched = self.matching(event)
        for rule, fields in matched:
            await self._dispatcher.dispatch(rule, fields)
        return len(matched)

    async def run(self, events: AsyncIterator[DeviceEvent]) -> None:
        logger.info(
            "Event listener started (%d device, %d power supply rules)",
            len(self._device_rules), len(self._power_supply_rules),
        )
        async for event in events:
            try:
                await self.handle(event)
            except Exception as exc:
                logger.warning("Failed to handle %s event on %s: %s", event.action, event.sysname, exc)
