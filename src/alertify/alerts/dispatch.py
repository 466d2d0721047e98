"""Render a triggered rule's message and deliver it.

Delivery (running the rule's command, showing the notification) can block
for an unpredictable time, so :meth:`Dispatcher.dispatch` moves it onto a
small thread pool. Watchers await the result before their next poll, which
keeps notifications from one watcher in observation order.

Failures are logged and reported as ``False``; they never raise into the
watcher. What happens to the latch after a failed notification is decided
by :class:`DispatchFailurePolicy`.
"""
from __future__ import annotations

import asyncio
import enum
import logging
import shlex
from concurrent.futures import ThreadPoolExecutor
from typing import Mapping

from .executor import Executor
from .hints import decode
from .latch import AlertLatch
from .notifier import Notification, Notifier, Urgency
from .rules import Message, Rule
from .template import render

logger = logging.getLogger(__name__)


class DispatchFailurePolicy(str, enum.Enum):
    KEEP = "keep"  # alert stays latched; no retry until the condition clears
    RELEASE = "release"  # alert is unlatched; the next poll may fire again


def render_notification(message: Message, fields: Mapping[str, str]) -> Notification:
    """Resolve every template in *message* against *fields*."""
    return Notification(
        urgency=Urgency.parse(message.urgency),
        appname=render(message.appname, fields),
        summary=render(message.summary, fields),
        body=render(message.body, fields),
        icon=render(message.icon, fields),
        timeout=message.timeout,
        hints=tuple(decode(render(hint, fields)) for hint in message.hints),
    )


class Dispatcher:
    """Deliver notifications and commands for triggered rules.

    Args:
        notifier:             Notification backend.
        executor:             Command backend.
        latch:                Latch to release on failure (RELEASE policy only).
        policy:               What to do with the latch when a notification fails.
        quote_command_fields: Shell-quote field values substituted into commands.
        workers:              Size of the delivery thread pool.
    """

    def __init__(
        self,
        notifier: Notifier,
        executor: Executor,
        latch: AlertLatch | None = None,
        policy: DispatchFailurePolicy = DispatchFailurePolicy.KEEP,
        quote_command_fields: bool = True,
        workers: int = 4,
    ) -> None:
        if policy is DispatchFailurePolicy.RELEASE and latch is None:
            raise ValueError("the release policy needs a latch")
        self._notifier = notifier
        self._executor = executor
        self._latch = latch
        self._policy = policy
        self._quote = quote_command_fields
        self._pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="alertify-dispatch")

    def render_command(self, message: Message, fields: Mapping[str, str]) -> str | None:
        if not message.exec:
            return None
        return render(message.exec, fields, escape=shlex.quote if self._quote else None)

    def deliver(self, rule: Rule, fields: Mapping[str, str], alert_key: str | None = None) -> bool:
        """Run the rule's command and show its notification (blocking).

        Returns True if the notification was shown.
        """
        command = self.render_command(rule.message, fields)
        if command:
            try:
                self._executor.run(command)
            except Exception as exc:
                logger.warning("Command for %s rule failed: %s", rule.kind.value, exc)

        try:
            shown = self._notifier.show(render_notification(rule.message, fields))
        except Exception as exc:
            logger.warning("Notifier failed for %s rule: %s", rule.kind.value, exc)
            shown = False

        if not shown and alert_key is not None:
            self._on_failure(alert_key)
        return shown

    def _on_failure(self, alert_key: str) -> None:
        if self._policy is DispatchFailurePolicy.RELEASE and self._latch is not None:
            if self._latch.release(alert_key):
                logger.info("Released %s after failed notification", alert_key)
        else:
            logger.debug("Keeping %s latched after failed notification", alert_key)

    async def dispatch(self, rule: Rule, fields: Mapping[str, str], alert_key: str | None = None) -> bool:
        """Deliver on the worker pool without blocking the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._pool, self.deliver, rule, dict(fields), alert_key)

    def close(self) -> None:
        self._pool.shutdown(wait=False, cancel_futures=True)
