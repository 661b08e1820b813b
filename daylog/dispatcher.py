"""Single chokepoint for every log call.

The Dispatcher counts each message, applies the minimum-level threshold,
echoes to the console and appends to the level's file. It also owns the
marker write path used for the start and end of a run.

Logging is fail-open: nothing raised inside dispatch() reaches the
caller. Internal failures are reported through this module's standard
library logger.
"""

import logging
import sys
from datetime import datetime
from typing import Callable, Optional, TextIO

from daylog.formatting import (
    format_console_line,
    format_file_line,
    normalise_message,
)
from daylog.handlers import LevelFilePool
from daylog.levels import LOG_FILE_BASE_NAMES, STDERR_LEVELS, Severity
from daylog.run_manager import ExecutionSession

logger = logging.getLogger(__name__)


class Dispatcher:
    """Route messages to the session counters, the console and the files."""

    def __init__(
        self,
        session: ExecutionSession,
        pool: LevelFilePool,
        threshold: Severity = Severity.INFO,
        clock: Optional[Callable[[], datetime]] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        """Initialize the dispatcher.

        Args:
            session: Counters for the current run
            pool: Shared per-level file writers
            threshold: Minimum level that produces output
            clock: Returns the current local time (defaults to datetime.now)
            stdout: Stream for DEBUG/INFO; sys.stdout at write time if None
            stderr: Stream for WARN and above; sys.stderr at write time if None
        """
        self.session = session
        self.pool = pool
        self.threshold = threshold
        self._clock = clock or datetime.now
        self._stdout = stdout
        self._stderr = stderr

    def is_enabled_for(self, level: Severity) -> bool:
        return level >= self.threshold

    def dispatch(
        self, level: Severity, source_name: Optional[str], message: object
    ) -> None:
        """Count, filter, then write a message to console and file.

        Args:
            level: Message severity
            source_name: Handle name; None omits it from the console line
                and uses the run name in the file line
            message: Message text; None is logged as "null"
        """
        try:
            text = normalise_message(message)
            self.session.record_message(level)

            if not self.is_enabled_for(level):
                return

            file_source = source_name or self.session.run_name
            console_line = format_console_line(level, source_name, text)
            file_line = format_file_line(self._clock(), level, file_source, text)

            self._echo(level, console_line)
            if level in LOG_FILE_BASE_NAMES:
                self.pool.write(level, file_line)
        except Exception:
            logger.exception(f"Internal error while logging a {level!r} message")

    def write_marker(self, level: Severity, body: str) -> None:
        """Write a run marker to every file at or above level, then echo it.

        The marker is followed by a blank line in each file. It is echoed to
        the console when level passes the threshold and is never counted.
        """
        try:
            line = format_file_line(self._clock(), level, self.session.run_name, body)
            for file_level in LOG_FILE_BASE_NAMES:
                if file_level >= level:
                    self.pool.write(file_level, line)
                    self.pool.write_blank(file_level)
            if self.is_enabled_for(level):
                self._echo(level, line)
        except Exception:
            logger.exception("Internal error while writing a run marker")

    def _echo(self, level: Severity, line: str) -> None:
        if level in STDERR_LEVELS:
            stream = self._stderr or sys.stderr
        else:
            stream = self._stdout or sys.stdout
        try:
            stream.write(f"{line}\n")
            stream.flush()
        except (OSError, ValueError) as e:
            logger.debug(f"Console write failed: {e}")
