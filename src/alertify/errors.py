"""Exception hierarchy for alertify."""
from __future__ import annotations


class AlertifyError(Exception):
    """Base class for errors that should stop the application with a message."""


class ConfigError(AlertifyError):
    """The rule file could not be read or failed validation."""


class SourceError(AlertifyError):
    """A metric or event source could not be opened or sampled."""
