"""Named logger handles.

A LoggerHandle is a thin façade carrying a source name; all handles of a
session share its Dispatcher and therefore one set of files and counters.
"""

import logging
import threading
from typing import TYPE_CHECKING

from daylog.errors import InvalidThreshold
from daylog.levels import Severity, parse_level

if TYPE_CHECKING:
    from daylog.dispatcher import Dispatcher

logger = logging.getLogger(__name__)


class LoggerHandle:
    """Log messages under a fixed source name."""

    __slots__ = ("name", "_dispatcher")

    def __init__(self, name: str, dispatcher: "Dispatcher"):
        self.name = name
        self._dispatcher = dispatcher

    def __repr__(self) -> str:
        return f"LoggerHandle({self.name!r})"

    def log(self, level: "Severity | str", message: object) -> None:
        """Log at level, given as a Severity or a level name."""
        try:
            severity = parse_level(level)
        except InvalidThreshold as e:
            logger.warning(f"Dropped message from {self.name!r}: {e.message}")
            return
        self._dispatcher.dispatch(severity, self.name, message)

    def is_enabled_for(self, level: Severity) -> bool:
        return self._dispatcher.is_enabled_for(level)

    def debug(self, message: object) -> None:
        self._dispatcher.dispatch(Severity.DEBUG, self.name, message)

    def info(self, message: object) -> None:
        self._dispatcher.dispatch(Severity.INFO, self.name, message)

    def warn(self, message: object) -> None:
        self._dispatcher.dispatch(Severity.WARN, self.name, message)

    warning = warn

    def error(self, message: object) -> None:
        self._dispatcher.dispatch(Severity.ERROR, self.name, message)

    def fatal(self, message: object) -> None:
        self._dispatcher.dispatch(Severity.FATAL, self.name, message)

    critical = fatal


class HandleRegistry:
    """Cache of handles by name; one handle object per distinct name.

    Handles are created on first request and kept until the registry is
    discarded.
    """

    def __init__(self, dispatcher: "Dispatcher"):
        self._dispatcher = dispatcher
        self._handles: dict[str, LoggerHandle] = {}
        self._lock = threading.Lock()

    def get_or_create(self, name: str) -> LoggerHandle:
        """Return the handle for name, creating it if absent."""
        handle = self._handles.get(name)
        if handle is not None:
            return handle
        with self._lock:
            handle = self._handles.get(name)
            if handle is None:
                handle = LoggerHandle(name, self._dispatcher)
                self._handles[name] = handle
            return handle

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._handles)

    def __contains__(self, name: str) -> bool:
        return name in self._handles

    def __len__(self) -> int:
        return len(self._handles)
