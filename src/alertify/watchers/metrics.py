"""psutil-backed threshold watchers for battery, CPU, memory and storage.

Template fields offered by each watcher (``level`` is added per rule):

    battery   left_percent, used_percent, plugged
    cpu       used_percent[_full], left_percent[_full], max_freq, avg_freq
    memory    total[_bytes], used[_bytes], left[_bytes],
              used_percent[_full], left_percent[_full]
    storage   as memory, plus name, fs, mount, kind

Percentages without ``_full`` are truncated to integers; sizes without
``_bytes`` are human readable (decimal units).
"""
from __future__ import annotations

import logging
from pathlib import Path

import psutil
from rich.filesize import decimal

from ..alerts.rules import RuleKind
from ..errors import SourceError
from .base import Observation, ThresholdWatcher

logger = logging.getLogger(__name__)

_SYS_BLOCK = Path("/sys/class/block")


def percent_fields(used_percent: float) -> dict[str, str]:
    left_percent = 100.0 - used_percent
    return {
        "used_percent_full": str(used_percent),
        "used_percent": str(int(used_percent)),
        "left_percent_full": str(left_percent),
        "left_percent": str(int(left_percent)),
    }


def size_fields(total: int, used: int, left: int) -> dict[str, str]:
    return {
        "total_bytes": str(total),
        "total": decimal(total),
        "used_bytes": str(used),
        "used": decimal(used),
        "left_bytes": str(left),
        "left": decimal(left),
    }


class BatteryWatcher(ThresholdWatcher):
    """Fires while the charge level is *below* a rule's level."""

    kind = RuleKind.BATTERY

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._missing_logged = False

    def sample(self) -> list[Observation]:
        battery = psutil.sensors_battery()
        if battery is None:
            if not self._missing_logged:
                logger.info("No battery found; battery rules are idle")
                self._missing_logged = True
            return []

        percent = float(battery.percent)
        left = int(percent)
        return [Observation(
            value=percent,
            fields={
                "left_percent": str(left),
                "used_percent": str(100 - left),
                "plugged": str(bool(battery.power_plugged)).lower(),
            },
        )]


class CpuWatcher(ThresholdWatcher):
    """Fires while overall CPU usage is at or above a rule's level.

    Usage is averaged over the time since the previous sample, so the first
    reading is primed at construction.
    """

    kind = RuleKind.CPU

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        psutil.cpu_percent(interval=None)

    def sample(self) -> list[Observation]:
        used_percent = float(psutil.cpu_percent(interval=None))
        fields = percent_fields(used_percent)

        freqs = [f.current for f in (psutil.cpu_freq(percpu=True) or [])]
        fields["max_freq"] = str(int(max(freqs))) if freqs else "0"
        fields["avg_freq"] = str(int(sum(freqs) / len(freqs))) if freqs else "0"
        return [Observation(value=used_percent, fields=fields)]


class MemoryWatcher(ThresholdWatcher):
    """Fires while used memory (total minus available) is at or above a rule's level."""

    kind = RuleKind.MEMORY

    def sample(self) -> list[Observation]:
        vm = psutil.virtual_memory()
        if not vm.total:
            raise SourceError("total memory reported as zero")
        used = vm.total - vm.available
        used_percent = used / vm.total * 100.0
        fields = {**size_fields(vm.total, used, vm.available), **percent_fields(used_percent)}
        return [Observation(value=used_percent, fields=fields)]


def disk_kind(device: str) -> str:
    """Classify a block device as ``HDD``, ``SSD`` or ``unknown`` from sysfs."""
    node = _SYS_BLOCK / Path(device).name
    try:
        path = node.resolve()
        if (path / "partition").exists():
            path = path.parent
        rotational = (path / "queue" / "rotational").read_text().strip()
    except OSError:
        return "unknown"
    return {"1": "HDD", "0": "SSD"}.get(rotational, "unknown")


class StorageWatcher(ThresholdWatcher):
    """Fires per mount point while its usage is at or above a rule's level."""

    kind = RuleKind.STORAGE

    def sample(self) -> list[Observation]:
        observations: list[Observation] = []
        for part in psutil.disk_partitions(all=False):
            try:
                usage = psutil.disk_usage(part.mountpoint)
            except OSError as exc:
                logger.debug("Skipping %s: %s", part.mountpoint, exc)
                continue
            if not usage.total:
                continue

            left = usage.free
            used = usage.total - left
            used_percent = used / usage.total * 100.0
            fields = {
                "name": part.device,
                "fs": part.fstype,
                "mount": part.mountpoint,
                "kind": disk_kind(part.device),
                **size_fields(usage.total, used, left),
                **percent_fields(used_percent),
            }
            observations.append(Observation(value=used_percent, fields=fields, instance=part.mountpoint))
        return observations
