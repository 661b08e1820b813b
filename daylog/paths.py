"""Daily log directory resolution.

Each calendar day (local time) gets its own directory under the base
directory, e.g. logs/2025-05-03/. A run started on a day that already has
a directory reuses it, so its files are appended to.
"""

import logging
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Optional

from daylog.errors import DirectoryUnavailable

logger = logging.getLogger(__name__)

DIRECTORY_DATE_FORMAT = "%Y-%m-%d"


def daily_directory_name(day: date) -> str:
    """Return the directory name for a calendar day (YYYY-MM-DD)."""
    return day.strftime(DIRECTORY_DATE_FORMAT)


class DailyDirectoryResolver:
    """Resolve and provision the directory for the current day.

    The directory is created at most once per calendar day per resolver;
    later calls on the same day return the cached path without touching
    the filesystem.
    """

    def __init__(
        self,
        base_dir: Path,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize the resolver.

        Args:
            base_dir: Directory that holds the per-day directories
            clock: Returns the current local time (defaults to datetime.now)
        """
        self.base_dir = Path(base_dir)
        self._clock = clock or datetime.now
        self._lock = threading.Lock()
        self._resolved_day: Optional[date] = None
        self._resolved_path: Optional[Path] = None

    def path_for(self, day: date) -> Path:
        """Return the directory path for a day without creating it."""
        return self.base_dir / daily_directory_name(day)

    def resolve(self) -> Path:
        """Return today's directory, creating it on first use.

        Returns:
            Existing directory path for the current local date

        Raises:
            DirectoryUnavailable: If the directory cannot be created
        """
        today = self._clock().date()
        with self._lock:
            if self._resolved_day == today and self._resolved_path is not None:
                return self._resolved_path

            path = self.path_for(today)
            try:
                path.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise DirectoryUnavailable(path.absolute(), str(e)) from e

            logger.debug(f"Daily log directory ready: {path.absolute()}")
            self._resolved_day = today
            self._resolved_path = path
            return path
