"""Side-effect command execution for rules with an ``exec`` template."""
from __future__ import annotations

import logging
import subprocess
from collections import deque
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Executor(Protocol):
    def run(self, command: str) -> None:
        """Launch *command*. Must not block until the command exits."""
        ...


class ShellExecutor:
    """Spawn commands through ``sh -c``, detached, with output discarded.

    No exit status is collected: the command runs in its own session and is
    left to finish on its own.
    """

    def __init__(self, shell: str = "/bin/sh") -> None:
        self._shell = shell

    def run(self, command: str) -> None:
        try:
            subprocess.Popen(
                [self._shell, "-c", command],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            logger.warning("Failed to launch command %r: %s", command, exc)
            return
        logger.debug("Launched command: %s", command)


class NullExecutor:
    """Log commands instead of running them (dry-run mode).

    Only the most recent *history* commands are kept in :attr:`commands`.
    """

    def __init__(self, history: int = 100) -> None:
        self.commands: deque[str] = deque(maxlen=history)

    def run(self, command: str) -> None:
        self.commands.append(command)
        logger.info("Dry run, not executing: %s", command)
