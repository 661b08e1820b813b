"""Per-run message accounting.

An ExecutionSession records when a run started and how many messages of
each level it produced, and renders the end-of-run summary written into
the log files at shutdown.

Usage:
    session = ExecutionSession.start("billing-import")
    session.record_message(Severity.WARN)
    print(session.summarize())
"""

import threading
from datetime import datetime
from typing import Callable, Optional

from daylog.formatting import SUMMARY_RULE, format_timestamp
from daylog.levels import Severity

NOTHING_LOGGED_NOTICE = "  (Nothing logged by this run above DEBUG.)"


class ExecutionSession:
    """Start time and per-level message counts for one run."""

    def __init__(
        self,
        run_name: str,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.run_name = run_name
        self._clock = clock or datetime.now
        # Re-entrant: a signal handler may summarize while record_message holds it
        self._lock = threading.RLock()
        # Indexed by Severity rank
        self._counts: list[int] = [0] * len(Severity)
        self.started_at = self._clock()

    @classmethod
    def start(
        cls,
        run_name: str,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "ExecutionSession":
        """Begin a run: capture the start time with every count at zero."""
        return cls(run_name, clock=clock)

    def record_message(self, level: Severity) -> int:
        """Increment the count for level.

        Returns:
            The count for level after the increment
        """
        with self._lock:
            self._counts[level] += 1
            return self._counts[level]

    def counts(self) -> dict[Severity, int]:
        """Return a snapshot of all counts, DEBUG first."""
        with self._lock:
            return {level: self._counts[level] for level in Severity}

    def count(self, level: Severity) -> int:
        with self._lock:
            return self._counts[level]

    def elapsed_seconds(self, now: Optional[datetime] = None) -> int:
        """Whole seconds elapsed since the run started."""
        now = now or self._clock()
        return int((now - self.started_at).total_seconds())

    def summarize(self) -> str:
        """Render the end-of-run summary block.

        Levels are listed from FATAL down to DEBUG and zero counts are
        omitted; a notice replaces the list when nothing was logged.
        """
        ended_at = self._clock()
        counts = self.counts()

        lines = [
            f"---------- End of run for {self.run_name} "
            f"[{format_timestamp(ended_at)}] "
            f"(Duration: ~{self.elapsed_seconds(ended_at)} seconds) ----------",
            "Summary of messages logged during this run:",
        ]
        level_lines = [
            f"  - {level.name}: {counts[level]}"
            for level in sorted(Severity, reverse=True)
            if counts[level] > 0
        ]
        lines.extend(level_lines or [NOTHING_LOGGED_NOTICE])
        lines.append(SUMMARY_RULE)
        return "\n".join(lines)
