"""Exceptions raised at the failing seams of the logging engine.

None of these reach callers of the logging calls: they are caught one
layer up and turned into console-only operation or a one-time diagnostic.
"""

from pathlib import Path
from typing import Any


class DaylogError(Exception):
    """Base daylog exception."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class DirectoryUnavailable(DaylogError):
    """The daily log directory could not be created."""

    def __init__(self, path: Path, reason: str = ""):
        self.path = path
        self.reason = reason
        message = f"Cannot create daily log directory {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SinkUnavailable(DaylogError):
    """The log file for one level could not be opened."""

    def __init__(self, level: Any, path: Path, reason: str = ""):
        self.level = level
        self.path = path
        self.reason = reason
        message = f"Cannot open log file for level {getattr(level, 'name', level)}: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidThreshold(DaylogError):
    """An unrecognized level name was given as the minimum level."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Unrecognized log level: {value!r}")
