"""
Typed domain errors for the media relay.

Each failure mode of a job has its own type so the job runner, the HTTP
layer and the cleanup helpers can decide whether to surface, log or
escalate it.
"""

from pathlib import Path
from typing import Optional, Union


class RelayError(Exception):
    """Base class for all relay-specific errors."""


# ---------------------------------------------------------------------------
# Job errors (fatal for the job, reported to the requester)
# ---------------------------------------------------------------------------


class DownloadFailed(RelayError):
    """The download step could not produce an artifact."""


class UploadFailed(RelayError):
    """Backup upload or forward failed, or the backup returned no handle.

    When raised for a split upload, ``part_index`` and ``part_count``
    identify the part that failed.
    """

    def __init__(
        self,
        reason: str,
        part_index: Optional[int] = None,
        part_count: Optional[int] = None,
    ) -> None:
        self.reason = reason
        self.part_index = part_index
        self.part_count = part_count
        if part_index is not None:
            total = f"/{part_count}" if part_count else ""
            message = f"Upload of part {part_index}{total} failed: {reason}"
        else:
            message = f"Upload failed: {reason}"
        super().__init__(message)

    def for_part(self, part_index: int, part_count: int) -> "UploadFailed":
        """Return a copy of this error attributed to a specific part."""
        return UploadFailed(self.reason, part_index=part_index, part_count=part_count)


# ---------------------------------------------------------------------------
# Housekeeping (logged only)
# ---------------------------------------------------------------------------


class CleanupFailed(RelayError):
    """A staging or source file could not be deleted."""

    def __init__(self, path: Union[str, Path], reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to delete {self.path}: {reason}")


# ---------------------------------------------------------------------------
# Ingress errors (mapped to HTTP responses, no job is created)
# ---------------------------------------------------------------------------


class ValidationFailed(RelayError):
    """The ingress request is malformed."""


class AuthFailed(RelayError):
    """The ingress request carries missing or invalid credentials."""
