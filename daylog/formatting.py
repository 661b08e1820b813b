"""Line formats for console output, log files and run markers."""

from datetime import datetime
from typing import Optional

from daylog.levels import Severity

MESSAGE_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

SUMMARY_RULE = "-" * 157


def format_timestamp(moment: datetime) -> str:
    """Format as yyyy-MM-dd HH:mm:ss.SSS (millisecond precision)."""
    return f"{moment.strftime(MESSAGE_TIMESTAMP_FORMAT)}.{moment.microsecond // 1000:03d}"


def normalise_message(message: object) -> str:
    """Render a message as text; None becomes the literal "null"."""
    if message is None:
        return "null"
    return message if isinstance(message, str) else str(message)


def format_console_line(
    level: Severity, source_name: Optional[str], message: str
) -> str:
    """[LEVEL] [source] message, or [LEVEL] message without a source."""
    if source_name:
        return f"[{level.name}] [{source_name}] {message}"
    return f"[{level.name}] {message}"


def format_file_line(
    moment: datetime, level: Severity, source_name: str, message: str
) -> str:
    """[timestamp] [LEVEL] [source] message. Also used for markers."""
    return f"[{format_timestamp(moment)}] [{level.name}] [{source_name}] {message}"


def start_marker_body(run_name: str) -> str:
    return f"---------- Start of run for {run_name} ----------"
