"""Transient data passed between the downloader, the relay and the job runner."""

import secrets
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class DownloadedArtifact:
    """A downloaded file owned by exactly one job.

    ``byte_size`` is what the downloader observed; the relay re-checks it
    against the file on disk before splitting.
    """

    path: Path
    declared_name: str
    byte_size: int


@dataclass(frozen=True)
class UploadPart:
    """One contiguous byte range of an oversized artifact (1-based index)."""

    index: int
    total: int
    offset: int
    length: int
    display_name: str

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass
class JobContext:
    """Everything one relay job needs to know about its request."""

    source_url: str
    chat_id: int
    user_id: int
    backup_channel_id: int
    custom_name: Optional[str] = None
    platform: str = "direct"
    job_id: str = field(default_factory=lambda: secrets.token_hex(4))


@dataclass
class RelayOutcome:
    """Result of relaying one artifact."""

    handles: List[str]
    part_count: int

    @property
    def was_split(self) -> bool:
        return self.part_count > 1
