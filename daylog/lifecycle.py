"""Run lifecycle for the daylog engine.

A LogSession owns one run: it provisions today's directory, opens the
per-level files, writes the start marker, hands out named handles, and on
shutdown writes the summary marker and closes the files.

Usage:
    from daylog import LogSession

    session = LogSession(run_name="importer", base_dir=Path("logs"))
    session.start()
    try:
        log = session.get_logger("parser")
        log.info("Parsing started")
    finally:
        session.shutdown()

    # Or with the process-wide default session:
    import daylog
    daylog.get_logger("parser").warn("Slow input")
"""

import logging
import threading
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, TextIO

from daylog.config import LogSettings, get_settings
from daylog.dispatcher import Dispatcher
from daylog.errors import DirectoryUnavailable, InvalidThreshold
from daylog.formatting import start_marker_body
from daylog.handlers import LevelFilePool
from daylog.levels import ROUTED_LEVELS, Severity, parse_level
from daylog.paths import DailyDirectoryResolver
from daylog.registry import HandleRegistry, LoggerHandle
from daylog.run_manager import ExecutionSession
from daylog.shutdown import ExitHooks

logger = logging.getLogger(__name__)


class SessionState(Enum):
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    CLOSED = "closed"


class LogSession:
    """Lifecycle controller owning the writer pool and execution session.

    States move Uninitialized -> Running -> Closed. Closed is terminal and
    shutting down twice is a no-op.

    start() begins a fresh ExecutionSession, so messages logged before it
    reach the console but are not counted in the run summary.
    """

    def __init__(
        self,
        run_name: Optional[str] = None,
        base_dir: Optional[Path] = None,
        min_level: "Severity | str | None" = None,
        *,
        install_exit_hooks: Optional[bool] = None,
        settings: Optional[LogSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        """Initialize an unstarted session.

        Args:
            run_name: Name written in markers and session-level messages
            base_dir: Parent directory of the per-day directories
            min_level: Minimum level that produces output
            install_exit_hooks: Register atexit and signal hooks on start
            settings: Defaults for any argument left as None
            clock: Returns the current local time (defaults to datetime.now)
            stdout: Console stream for DEBUG/INFO
            stderr: Console stream for WARN and above
        """
        settings = settings or get_settings()
        self.run_name = run_name or settings.run_name
        self.base_dir = Path(base_dir) if base_dir is not None else settings.base_dir
        requested_level = min_level if min_level is not None else settings.min_level
        self._install_hooks = (
            settings.install_exit_hooks if install_exit_hooks is None else install_exit_hooks
        )
        self._clock = clock or datetime.now

        self._state = SessionState.UNINITIALIZED
        self._state_lock = threading.RLock()

        self.resolver = DailyDirectoryResolver(self.base_dir, clock=self._clock)
        self.pool = LevelFilePool()
        self.execution = ExecutionSession.start(self.run_name, clock=self._clock)
        self.dispatcher = Dispatcher(
            self.execution,
            self.pool,
            threshold=Severity.INFO,
            clock=self._clock,
            stdout=stdout,
            stderr=stderr,
        )
        self.registry = HandleRegistry(self.dispatcher)
        self._hooks = ExitHooks(self._shutdown_from_hook)
        self.log_dir: Optional[Path] = None

        # An unrecognized configured level is reported once the run has started
        self._invalid_level: Optional[InvalidThreshold] = None
        try:
            self.dispatcher.threshold = parse_level(requested_level)
        except InvalidThreshold as e:
            self._invalid_level = e

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state is SessionState.RUNNING

    @property
    def minimum_level(self) -> Severity:
        return self.dispatcher.threshold

    @property
    def exit_hooks(self) -> ExitHooks:
        return self._hooks

    def start(self) -> "LogSession":
        """Provision today's directory, open the files and write the start marker.

        A directory that cannot be created leaves the session running with
        console output only.
        """
        with self._state_lock:
            if self._state is not SessionState.UNINITIALIZED:
                return self

            try:
                self.log_dir = self.resolver.resolve()
            except DirectoryUnavailable as e:
                logger.error(f"{e.message}. Continuing with console output only.")
                self.pool.mark_unavailable(ROUTED_LEVELS, e.message)
            else:
                self.pool.open(self.log_dir, ROUTED_LEVELS)

            self.execution = ExecutionSession.start(self.run_name, clock=self._clock)
            self.dispatcher.session = self.execution
            self._state = SessionState.RUNNING

            self.dispatcher.write_marker(Severity.INFO, start_marker_body(self.run_name))
            if self._invalid_level is not None:
                self._report_invalid_level(self._invalid_level)

            if self._install_hooks:
                self._hooks.install()

        location = self.log_dir.absolute() if self.log_dir else "(unavailable)"
        logger.info(
            f"Logger '{self.run_name}' initialised "
            f"(minimum level: {self.minimum_level.name}). Daily logs in {location}."
        )
        return self

    def shutdown(self) -> None:
        """Write the summary marker and close the files. Idempotent."""
        self._hooks.remove()
        self._close()

    close = shutdown

    def _shutdown_from_hook(self) -> None:
        self._close()

    def _close(self) -> None:
        with self._state_lock:
            if self._state is SessionState.CLOSED:
                return
            was_running = self._state is SessionState.RUNNING
            self._state = SessionState.CLOSED

            if was_running:
                self.dispatcher.write_marker(Severity.INFO, self.execution.summarize())
            self.pool.close_all()

        if was_running:
            logger.info(f"Logger '{self.run_name}' stopped. Log files closed.")

    def set_minimum_level(self, level: "Severity | str", announce: bool = True) -> bool:
        """Change the minimum level that produces output.

        An unrecognized level is reported as a WARN entry and the threshold
        is left unchanged.

        Returns:
            True if the threshold was changed
        """
        try:
            severity = parse_level(level)
        except InvalidThreshold as e:
            self._report_invalid_level(e)
            return False

        self.dispatcher.threshold = severity
        if announce:
            logger.info(f"Logger '{self.run_name}': minimum level changed to {severity.name}.")
        return True

    def _report_invalid_level(self, error: InvalidThreshold) -> None:
        self.dispatcher.dispatch(
            Severity.WARN,
            None,
            f"{error.message}; minimum level stays {self.minimum_level.name}",
        )

    def get_logger(self, name: str) -> LoggerHandle:
        """Return the shared handle for name, creating it on first use."""
        return self.registry.get_or_create(name)

    def log(self, level: "Severity | str", message: object) -> None:
        try:
            severity = parse_level(level)
        except InvalidThreshold as e:
            logger.warning(f"Dropped message from {self.run_name!r}: {e.message}")
            return
        self.dispatcher.dispatch(severity, None, message)

    def debug(self, message: object) -> None:
        self.dispatcher.dispatch(Severity.DEBUG, None, message)

    def info(self, message: object) -> None:
        self.dispatcher.dispatch(Severity.INFO, None, message)

    def warn(self, message: object) -> None:
        self.dispatcher.dispatch(Severity.WARN, None, message)

    def error(self, message: object) -> None:
        self.dispatcher.dispatch(Severity.ERROR, None, message)

    def fatal(self, message: object) -> None:
        self.dispatcher.dispatch(Severity.FATAL, None, message)

    def __enter__(self) -> "LogSession":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()


# Process-wide default session, created lazily from get_settings()
_default_session: Optional[LogSession] = None
_default_lock = threading.Lock()


def get_default_session() -> LogSession:
    """Get or create (and start) the process-wide default session."""
    global _default_session
    with _default_lock:
        if _default_session is None:
            _default_session = LogSession().start()
        return _default_session


def reset_default_session() -> None:
    """Shut down and discard the default session.

    Useful for testing; the next get_default_session() starts a new run.
    """
    global _default_session
    with _default_lock:
        session, _default_session = _default_session, None
    if session is not None:
        session.shutdown()


def get_logger(name: str) -> LoggerHandle:
    """Return a named handle bound to the default session."""
    return get_default_session().get_logger(name)


def set_minimum_level(level: "Severity | str") -> bool:
    """Change the minimum level of the default session."""
    return get_default_session().set_minimum_level(level)


def shutdown() -> None:
    """Shut down the default session if one was created. Idempotent."""
    with _default_lock:
        session = _default_session
    if session is not None:
        session.shutdown()
