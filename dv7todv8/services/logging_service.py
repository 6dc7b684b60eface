"""
This module provides the error log written next to the converted files.

Console output goes through loguru. When a conversion stage fails, the details
an operator needs to investigate (the stage, the command line and the tool's
error output) are also appended to a plain text file in the target directory,
so they survive after the terminal is closed.
"""
from datetime import datetime
from pathlib import Path

from loguru import logger

from ..config.common import ERROR_LOG_FILE_NAME


class ErrorLog:
    """
    Appends human-readable error reports to a text file.

    Each call to `write` adds one report, followed by a separator line, making
    the file a chronological record of failed runs.
    """

    # A decorative separator line used between reports.
    linesep_marker: str = "=" * 50

    def __init__(self, error_log_dir: Path, filename: str = ERROR_LOG_FILE_NAME):
        self.log_dir: Path = error_log_dir.resolve()
        self.log_file_path: Path = self.log_dir / filename

    def write(self, *error_messages: str):
        """
        Writes one or more error messages to the log file.

        Args:
            *error_messages: Pieces of the report, each written on its own line.
        """
        if not error_messages:
            return

        timestamp = datetime.now().isoformat(timespec="seconds")
        content_to_write = "\n".join((timestamp,) + error_messages) + "\n" + self.linesep_marker + "\n"

        try:
            with self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            # The console log still carries the messages.
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")
