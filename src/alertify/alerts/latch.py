"""Alert latch — exactly-once notification per threshold crossing.

Each alert key is either *inactive* or *active*:

    inactive --condition true-->  active    FIRE
    active   --condition true-->  active    SUPPRESS
    any      --condition false--> inactive  CLEARED (silent)

One latch is created by the application and handed to every watcher. The
lock guards only the check-and-update of the key set; callers must dispatch
notifications after :meth:`AlertLatch.check` has returned.
"""
from __future__ import annotations

import enum
import logging
import threading

logger = logging.getLogger(__name__)


class LatchDecision(enum.Enum):
    FIRE = "fire"
    SUPPRESS = "suppress"
    CLEARED = "cleared"


class AlertLatch:
    """Thread-safe set of alert keys with an outstanding notification."""

    def __init__(self) -> None:
        self._active: set[str] = set()
        self._lock = threading.Lock()

    def check(self, key: str, condition: bool) -> LatchDecision:
        """Record the latest evaluation of *key* and decide whether to notify."""
        recovered = False
        with self._lock:
            if condition:
                if key in self._active:
                    return LatchDecision.SUPPRESS
                self._active.add(key)
                decision = LatchDecision.FIRE
            else:
                recovered = key in self._active
                self._active.discard(key)
                decision = LatchDecision.CLEARED

        if decision is LatchDecision.FIRE:
            logger.info("Alert %s fired", key)
        elif recovered:
            logger.info("Alert %s cleared", key)
        return decision

    def release(self, key: str) -> bool:
        """Force *key* back to inactive. Returns True if it was active."""
        with self._lock:
            if key in self._active:
                self._active.remove(key)
                return True
        return False

    def active_keys(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._active)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._active

    def __len__(self) -> int:
        with self._lock:
            return len(self._active)

    def __repr__(self) -> str:
        return f"AlertLatch({len(self)} active)"
