"""Process termination hooks for closing a logging session.

Runs a callback at most once when the process ends, whichever comes
first of:
- normal interpreter exit (atexit, also reached after KeyboardInterrupt)
- SIGTERM / SIGHUP, which would otherwise kill the process without
  running atexit callbacks

Usage:
    hooks = ExitHooks(session.shutdown)
    hooks.install()
    ...
    hooks.remove()  # after an explicit shutdown
"""

import atexit
import logging
import signal
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

# SIGHUP does not exist on Windows
HOOKED_SIGNALS = tuple(
    getattr(signal, name) for name in ("SIGTERM", "SIGHUP") if hasattr(signal, name)
)


class ExitHooks:
    """Run a callback once on interpreter exit or termination signal."""

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._lock = threading.RLock()
        self._fired = False
        self._installed = False
        self._previous_handlers: dict[int, Any] = {}

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def fired(self) -> bool:
        return self._fired

    def install(self) -> None:
        """Register the atexit callback and the signal handlers.

        Signal handlers can only be set from the main thread; elsewhere only
        the atexit callback is registered.
        """
        if self._installed:
            return

        atexit.register(self.run)
        for signum in HOOKED_SIGNALS:
            try:
                self._previous_handlers[signum] = signal.signal(
                    signum, self._handle_signal
                )
            except (ValueError, OSError) as e:
                # Not the main thread, or signal not supported here
                logger.debug(f"Cannot install handler for signal {signum}: {e}")
        self._installed = True
        logger.debug("Exit hooks installed")

    def remove(self) -> None:
        """Unregister the atexit callback and restore previous signal handlers."""
        if not self._installed:
            return

        atexit.unregister(self.run)
        for signum, previous in self._previous_handlers.items():
            try:
                signal.signal(signum, previous)
            except (ValueError, OSError, TypeError) as e:
                logger.debug(f"Cannot restore handler for signal {signum}: {e}")
        self._previous_handlers.clear()
        self._installed = False
        logger.debug("Exit hooks removed")

    def run(self) -> None:
        """Invoke the callback unless it already ran."""
        with self._lock:
            if self._fired:
                return
            self._fired = True
        try:
            self._callback()
        except Exception:
            logger.exception("Exit hook callback failed")

    def _handle_signal(self, signum: int, frame: Any) -> None:
        logger.info(f"Termination signal {signum} received")
        self.run()

        previous = self._previous_handlers.get(signum, signal.SIG_DFL)
        if callable(previous):
            previous(signum, frame)
        elif previous == signal.SIG_IGN:
            return
        else:
            raise SystemExit(128 + signum)
