"""
Defines custom exception types for the DV7toDV8 application.

These exceptions let the pipeline distinguish the kinds of failure it has to
report: a bad command line, a run that cannot start (pre-flight) and a
conversion stage that failed part way through a file. All of them are fatal to
the run; the orchestrator turns them into a log message and exit status 1.

All custom exceptions inherit from the base `DV7toDV8Exception`.
"""
from pathlib import Path
from typing import Optional


class DV7toDV8Exception(Exception):
    """Base class for all custom exceptions in the DV7toDV8 application."""

    pass


class UsageException(DV7toDV8Exception):
    """Raised for unsupported flags or malformed flag values on the command line."""

    pass


# --- Pre-flight Exceptions ---
class PreflightException(DV7toDV8Exception):
    """
    Base class for failures detected before any file is touched.

    When one of these is raised the run never starts, so no intermediate files
    are created.
    """

    pass


class TargetDirectoryNotFoundException(PreflightException):
    """Raised when the target directory does not exist or is not a directory."""

    pass


class ToolNotFoundException(PreflightException):
    """
    Raised when a required external tool cannot be resolved.

    For system tools this means the binary is not on the search path; for
    bundled tools it means the binary is missing from the tools directory.
    """

    def __init__(self, tool: str, location: str):
        super().__init__(f"{tool} not found in {location}.")
        self.tool = tool
        self.location = location


class ScanDependencyException(PreflightException):
    """Raised when a directory scan is requested but mediainfo is not available."""

    pass


# --- Conversion Exceptions ---
class ConversionException(DV7toDV8Exception):
    """Base class for exceptions raised while a file is being converted."""

    pass


class StageFailedException(ConversionException):
    """
    Raised when a mandatory pipeline stage fails.

    A stage fails when its external tool exits with a nonzero status or does not
    produce the file it was asked to produce. The whole run is aborted; artifacts
    created by earlier stages are left on disk.
    """

    def __init__(
        self,
        stage: str,
        source: Path,
        detail: str,
        command: Optional[str] = None,
        stderr: Optional[str] = None,
    ):
        super().__init__(f"{stage} failed for '{source.name}': {detail}")
        self.stage = stage
        self.source = source
        self.detail = detail
        self.command = command
        self.stderr = stderr
