"""Desktop notification backends.

The dispatcher hands a fully rendered :class:`Notification` to a
:class:`Notifier`. Backends report success as a bool and log their own
failures; display problems must never propagate into a watcher loop.
"""
from __future__ import annotations

import enum
import logging
import subprocess
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from rich.console import Console
from rich.markup import escape

from .hints import Hint, HintType

logger = logging.getLogger(__name__)


class Urgency(str, enum.Enum):
    LOW = "low"
    NORMAL = "normal"
    CRITICAL = "critical"

    @classmethod
    def parse(cls, value: str) -> "Urgency":
        """Map a rule's urgency string; anything unrecognised is NORMAL."""
        try:
            return cls(value)
        except ValueError:
            return cls.NORMAL


@dataclass(frozen=True)
class Notification:
    """A message with every template already resolved."""

    urgency: Urgency
    appname: str
    summary: str
    body: str = ""
    icon: str = ""
    timeout: int | None = None
    hints: tuple[Hint, ...] = field(default_factory=tuple)


@runtime_checkable
class Notifier(Protocol):
    def show(self, notification: Notification) -> bool:
        """Display *notification*. Returns False if it could not be shown."""
        ...


# notify-send names its hint types differently and requires one
_NOTIFY_SEND_TYPES = {
    HintType.BOOL: "boolean",
    HintType.INT: "int",
    HintType.DOUBLE: "double",
    HintType.STRING: "string",
    HintType.UNTYPED: "string",
}


class NotifySendNotifier:
    """Show notifications through the freedesktop ``notify-send`` tool.

    Example command line for a battery alert::

        notify-send --urgency critical --app-name Battery \\
            --hint int:value:18 -- "Battery low" "18% left"
    """

    def __init__(self, command: str = "notify-send", timeout: float = 10.0) -> None:
        if not command:
            raise ValueError("notify command must not be empty")
        self._command = command
        self._timeout = timeout

    def build_args(self, notification: Notification) -> list[str]:
        args = [self._command, "--urgency", notification.urgency.value]
        if notification.appname:
            args += ["--app-name", notification.appname]
        if notification.icon:
            args += ["--icon", notification.icon]
        if notification.timeout is not None:
            args += ["--expire-time", str(notification.timeout)]
        for hint in notification.hints:
            hint_type = _NOTIFY_SEND_TYPES[hint.type]
            args += ["--hint", f"{hint_type}:{hint.key}:{hint.value}"]
        args += ["--", notification.summary]
        if notification.body:
            args.append(notification.body)
        return args

    def show(self, notification: Notification) -> bool:
        try:
            subprocess.run(
                self.build_args(notification),
                check=True,
                capture_output=True,
                timeout=self._timeout,
            )
        except subprocess.CalledProcessError as exc:
            logger.warning(
                "%s exited with status %s: %s",
                self._command, exc.returncode, (exc.stderr or b"").decode(errors="replace").strip(),
            )
            return False
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning("Failed to show notification %r: %s", notification.summary, exc)
            return False
        return True


class ConsoleNotifier:
    """Print notifications to the terminal instead of the desktop."""

    _STYLES = {
        Urgency.LOW: "dim",
        Urgency.NORMAL: "cyan",
        Urgency.CRITICAL: "bold red",
    }

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def show(self, notification: Notification) -> bool:
        style = self._STYLES[notification.urgency]
        app = f"[{style}]{escape(notification.appname or 'alertify')}[/{style}]"
        self._console.print(f"{app} [bold]{escape(notification.summary)}[/bold]", highlight=False)
        if notification.body:
            self._console.print(f"  {escape(notification.body)}", highlight=False)
        for hint in notification.hints:
            self._console.print(f"  [dim]hint {escape(hint.key)}={escape(hint.value)}[/dim]", highlight=False)
        return True
