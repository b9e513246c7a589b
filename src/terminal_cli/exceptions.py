"""
Exception hierarchy for terminal-cli.

Setup errors (``AvailabilityConfigError``) are fatal and end the process.
Per-job errors (``LinkResolutionError``, ``TransportError``) are caught by the
download workers and turned into a Failed outcome.
"""
from typing import Optional


class TerminalCliError(Exception):
    """Base class for every error raised by this package."""


class AvailabilityConfigError(TerminalCliError):
    """Availability rules could not be loaded."""


class JobError(TerminalCliError):
    """Failure scoped to a single download job."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class LinkResolutionError(JobError):
    """The link service did not return a usable download URL."""


class TransportError(JobError):
    """Streaming the file body from the signed URL failed."""


class DownloadCancelled(JobError):
    """The run was interrupted while this job was in flight."""

    def __init__(self, message: str = "cancelled"):
        super().__init__(message)
