"""Severity scale shared by filtering, console routing and file routing.

The declaration order of Severity is its rank. Only INFO and above have a
dedicated file in the daily directory; DEBUG is console-only.
"""

from enum import IntEnum

from daylog.errors import InvalidThreshold


class Severity(IntEnum):
    """Log severity, totally ordered by declaration rank."""

    DEBUG = 0
    INFO = 1
    WARN = 2
    ERROR = 3
    FATAL = 4

    @property
    def rank(self) -> int:
        return int(self)


# Levels with a dedicated <name>.log file, mapped to the file's base name
LOG_FILE_BASE_NAMES: dict[Severity, str] = {
    Severity.INFO: "info",
    Severity.WARN: "warn",
    Severity.ERROR: "error",
    Severity.FATAL: "fatal",
}

ROUTED_LEVELS: tuple[Severity, ...] = tuple(LOG_FILE_BASE_NAMES)

# Levels whose console echo goes to stderr
STDERR_LEVELS: frozenset[Severity] = frozenset(
    {Severity.WARN, Severity.ERROR, Severity.FATAL}
)


def log_file_name(level: Severity) -> str:
    """Return the file name used for a routed level (e.g. "info.log")."""
    return f"{LOG_FILE_BASE_NAMES[level]}.log"


def parse_level(value: "Severity | str") -> Severity:
    """Resolve a Severity or a level name to a Severity.

    Names are matched case-insensitively after stripping whitespace.

    Args:
        value: A Severity member or one of DEBUG, INFO, WARN, ERROR, FATAL

    Returns:
        The matching Severity

    Raises:
        InvalidThreshold: If the value is not a recognized level
    """
    if isinstance(value, Severity):
        return value
    if isinstance(value, str):
        try:
            return Severity[value.strip().upper()]
        except KeyError:
            pass
    raise InvalidThreshold(value)
