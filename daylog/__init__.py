"""Daily, per-level file and console logging with run summaries.

Each calendar day gets a directory under the base directory and each
level from INFO up gets its own append-mode file in it. Every run writes
a start marker and, on shutdown, a summary of how many messages it logged.

Usage:
    # At the entry point:
    from daylog import LogSession

    with LogSession(run_name="nightly-sync", min_level="DEBUG") as session:
        log = session.get_logger("fetcher")
        log.info("Fetched 120 records")

    # Or with the default session (closed automatically at exit):
    import daylog
    log = daylog.get_logger("fetcher")
    log.warn("Retrying request")

Log files are created in <base-dir>/<YYYY-MM-DD>/:
    - info.log, warn.log, error.log, fatal.log
    - DEBUG messages are console-only
"""

from daylog.config import LogSettings, get_settings
from daylog.errors import (
    DaylogError,
    DirectoryUnavailable,
    InvalidThreshold,
    SinkUnavailable,
)
from daylog.levels import ROUTED_LEVELS, Severity, parse_level
from daylog.lifecycle import (
    LogSession,
    SessionState,
    get_default_session,
    get_logger,
    reset_default_session,
    set_minimum_level,
    shutdown,
)
from daylog.registry import HandleRegistry, LoggerHandle

__all__ = [
    "LogSession",
    "SessionState",
    "LoggerHandle",
    "HandleRegistry",
    "Severity",
    "ROUTED_LEVELS",
    "parse_level",
    "LogSettings",
    "get_settings",
    "get_logger",
    "set_minimum_level",
    "shutdown",
    "get_default_session",
    "reset_default_session",
    "DaylogError",
    "DirectoryUnavailable",
    "SinkUnavailable",
    "InvalidThreshold",
]
