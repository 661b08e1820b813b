"""Per-level file handlers and the pool that owns them.

LevelFileHandler is a logging.Handler bound to one append-mode file
(info.log, warn.log, error.log or fatal.log). LevelFilePool holds one
handler per routed level inside the daily directory and is shared by every
logger handle of a session.

Note on failures:
    Opening is isolated per level: a file that cannot be opened leaves
    that level without file output while the other levels keep working.
    Every level is diagnosed at most once, through the standard library
    logger of this module and never through the daylog dispatch path.

Note on locking:
    Every lock here is re-entrant (Handler.createLock gives an RLock), so
    a termination signal handled on a thread that is mid-write can still
    write the summary and close the files.
"""

import logging
import threading
from pathlib import Path
from typing import Iterable, Optional, TextIO

from daylog.errors import SinkUnavailable
from daylog.levels import ROUTED_LEVELS, Severity, log_file_name

logger = logging.getLogger(__name__)


class LevelFileHandler(logging.Handler):
    """Append-mode, auto-flushing file for a single severity level.

    Writes are serialized through the handler lock, so lines from
    concurrent callers never interleave, and close() waits for a write in
    progress before releasing the file.
    """

    def __init__(self, severity: Severity, path: Path):
        """Open the file in append mode.

        Args:
            severity: Level whose messages this file holds
            path: Location of the log file

        Raises:
            SinkUnavailable: If the file cannot be opened
        """
        super().__init__()
        self.severity = severity
        self.path = Path(path)
        try:
            self.stream: Optional[TextIO] = open(self.path, "a", encoding="utf-8")
        except OSError as e:
            raise SinkUnavailable(severity, self.path.absolute(), str(e)) from e

    def write_line(self, text: str) -> None:
        """Append text and flush.

        Raises:
            ValueError: If the handler is closed
            OSError: If the write fails
        """
        self.acquire()
        try:
            stream = self.stream
            if stream is None:
                raise ValueError(f"Log file for level {self.severity.name} is closed")
            stream.write(text)
            stream.flush()
        finally:
            self.release()

    def emit(self, record: logging.LogRecord) -> None:
        """Write a formatted record as one line."""
        try:
            self.write_line(self.format(record) + "\n")
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        self.acquire()
        try:
            if self.stream is not None:
                self.stream.flush()
        finally:
            self.release()

    def close(self) -> None:
        """Flush and close the file. Safe to call more than once."""
        self.acquire()
        try:
            stream, self.stream = self.stream, None
            if stream is not None:
                try:
                    stream.flush()
                finally:
                    stream.close()
        finally:
            self.release()
        super().close()


class LevelFilePool:
    """One LevelFileHandler per routed level.

    Features:
    - One file per routed level, opened in append mode
    - Flush after every write
    - close_all() waits for in-flight writes and is idempotent

    Usage:
        pool = LevelFilePool()
        pool.open(Path("logs/2025-05-03"))
        pool.write(Severity.INFO, "[...] [INFO] [app] started")
        pool.close_all()
    """

    def __init__(self) -> None:
        self.directory: Optional[Path] = None
        self._handlers: dict[Severity, LevelFileHandler] = {}
        self._unavailable: set[Severity] = set()
        self._diagnosed: set[Severity] = set()
        self._lock = threading.RLock()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def available_levels(self) -> frozenset[Severity]:
        """Levels that currently have an open file."""
        return frozenset(self._handlers)

    @property
    def unavailable_levels(self) -> frozenset[Severity]:
        """Levels whose file could not be opened or were marked unusable."""
        return frozenset(self._unavailable)

    def handler_for(self, level: Severity) -> Optional[LevelFileHandler]:
        return self._handlers.get(level)

    def open(
        self,
        directory: Path,
        levels: Iterable[Severity] = ROUTED_LEVELS,
    ) -> None:
        """Open (or reuse) the file of each level inside directory.

        Args:
            directory: Existing daily directory
            levels: Levels to open, normally ROUTED_LEVELS
        """
        self.directory = Path(directory)
        with self._lock:
            self._closed = False
            for level in levels:
                if level in self._handlers:
                    continue
                try:
                    self._handlers[level] = LevelFileHandler(
                        level, self.directory / log_file_name(level)
                    )
                    self._unavailable.discard(level)
                    self._diagnosed.discard(level)
                except SinkUnavailable as e:
                    self._unavailable.add(level)
                    self._diagnose(level, e.message)

    def mark_unavailable(self, levels: Iterable[Severity], reason: str) -> None:
        """Record levels as having no file without attempting to open them.

        Used when the daily directory itself is unavailable; the caller has
        already reported the reason, so no per-level diagnostic follows.
        """
        with self._lock:
            for level in levels:
                self._unavailable.add(level)
                self._diagnosed.add(level)
        logger.debug(f"File output disabled: {reason}")

    def write(self, level: Severity, line: str) -> None:
        """Append line and a newline to the file of level, then flush."""
        self._append(level, f"{line}\n")

    def write_blank(self, level: Severity) -> None:
        """Append an empty line to the file of level."""
        self._append(level, "\n")

    def _append(self, level: Severity, text: str) -> None:
        handler = self._handlers.get(level)
        if handler is None:
            if self._closed:
                self._diagnose(level, f"Log file for level {level.name} is closed")
            else:
                self._diagnose(level, f"No log file writer available for level {level.name}")
            return
        try:
            handler.write_line(text)
        except (OSError, ValueError) as e:
            self._diagnose(level, f"Failed to write to log file for level {level.name}: {e}")

    def _diagnose(self, level: Severity, message: str) -> None:
        with self._lock:
            if level in self._diagnosed:
                return
            self._diagnosed.add(level)
        logger.error(message)

    def close_all(self) -> None:
        """Flush and close every open file.

        Each handler takes its own lock before closing, so a write in
        progress finishes first. Safe to call more than once.
        """
        with self._lock:
            handlers = list(self._handlers.values())
            self._handlers.clear()
            self._closed = True
        for handler in handlers:
            try:
                handler.close()
            except (OSError, ValueError) as e:
                logger.warning(
                    f"Failed to close log file for level {handler.severity.name}: {e}"
                )
