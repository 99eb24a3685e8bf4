"""Append-only per-server log files."""

from collections import deque
from datetime import datetime
from pathlib import Path
from typing import TextIO


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_line(message: str, when: datetime | None = None) -> str:
    """Format one log line: ``YYYY-MM-DD HH:MM:SS - message``."""
    when = when or datetime.now()
    return f"{when.strftime(TIMESTAMP_FORMAT)} - {message}"


class MountLogger:
    """
    Logger for mount health checks.

    Appends one timestamped line per event to the server's log file,
    optionally echoing each line to a stream.
    """

    def __init__(self, log_path: Path, echo: TextIO | None = None):
        """
        Initialize logger.

        Args:
            log_path: Path to the server's log file
            echo: Stream that also receives every line (e.g. sys.stdout)
        """
        self.log_path = Path(log_path)
        self.echo = echo
        self._file = None

    def _ensure_file(self) -> None:
        """Ensure log file is open."""
        if self._file is None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.log_path, "a")

    def log(self, message: str) -> None:
        """Write a log line."""
        line = format_line(message)
        self._ensure_file()
        self._file.write(line + "\n")
        self._file.flush()
        if self.echo is not None:
            print(line, file=self.echo)

    def close(self) -> None:
        """Close the log file."""
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> "MountLogger":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


def tail_log(log_path: Path, lines: int = 20) -> list[str]:
    """
    Return the last lines of a log file.

    Args:
        log_path: Log file to read
        lines: Maximum number of lines to return

    Returns:
        Lines without trailing newlines, oldest first; empty if the file is missing
    """
    if not log_path.exists():
        return []

    with open(log_path) as f:
        last = deque((line.rstrip("\n") for line in f if line.strip()), maxlen=lines)
    return list(last)
