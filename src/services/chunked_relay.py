"""Chunked relay service.

Delivers a downloaded artifact to a Telegram chat. Files at or under the
per-message limit go up in one two-hop upload; larger files are cut into
contiguous byte ranges and each range is staged, uploaded and deleted in
turn, strictly in order.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional

from ..domain.artifacts import DownloadedArtifact, RelayOutcome, UploadPart
from ..domain.errors import UploadFailed
from ..domain.ports import Notifier
from ..utils.files import generate_temp_path, part_display_name, remove_file_quietly
from ..utils.logging import RelayLogContext
from .two_hop_upload import TwoHopUploader

logger = logging.getLogger(__name__)

# Sits under the Bot API's 50 MB per-upload ceiling.
DEFAULT_MAX_PART_SIZE = 50 * 1024 * 1024

# Copy buffer used when staging a part; keeps memory flat for large parts.
COPY_BUFFER_SIZE = 1024 * 1024


def count_parts(byte_size: int, max_part_size: int) -> int:
    """Number of parts needed: ceil(byte_size / max_part_size).

    Args:
        byte_size: Artifact size in bytes.
        max_part_size: Largest allowed part in bytes (must be positive).
    """
    if max_part_size <= 0:
        raise ValueError(f"max_part_size must be positive, got {max_part_size}")
    if byte_size <= 0:
        return 0
    return -(-byte_size // max_part_size)


def plan_parts(
    declared_name: str, byte_size: int, max_part_size: int
) -> List[UploadPart]:
    """Split ``byte_size`` bytes into ordered, non-overlapping parts.

    Every part is exactly ``max_part_size`` long except the last, which
    takes the remainder. The ranges cover ``[0, byte_size)`` exactly.
    """
    total = count_parts(byte_size, max_part_size)
    parts = []
    for index in range(1, total + 1):
        offset = (index - 1) * max_part_size
        parts.append(
            UploadPart(
                index=index,
                total=total,
                offset=offset,
                length=min(max_part_size, byte_size - offset),
                display_name=part_display_name(declared_name, index),
            )
        )
    return parts


def write_part(source: Path, part: UploadPart, destination: Path) -> int:
    """Copy ``part``'s byte range of ``source`` into ``destination``.

    Returns the number of bytes written, which always equals
    ``part.length``; a short read raises OSError.
    """
    remaining = part.length
    with open(source, "rb") as src, open(destination, "wb") as dst:
        src.seek(part.offset)
        while remaining > 0:
            chunk = src.read(min(COPY_BUFFER_SIZE, remaining))
            if not chunk:
                raise OSError(
                    f"Unexpected end of {source} at offset {part.end - remaining}"
                )
            dst.write(chunk)
            remaining -= len(chunk)
    return part.length


def format_split_notice(num_parts: int) -> str:
    """User-facing notice sent before a split upload starts."""
    return f"📦 File is larger than the upload limit and will be sent in {num_parts} parts..."


class ChunkedRelay:
    """Relays artifacts through a TwoHopUploader, splitting when needed."""

    def __init__(
        self,
        uploader: TwoHopUploader,
        notifier: Notifier,
        temp_dir: Path,
        max_part_size: int = DEFAULT_MAX_PART_SIZE,
    ) -> None:
        self._uploader = uploader
        self._notifier = notifier
        self.temp_dir = Path(temp_dir)
        self.max_part_size = max_part_size

    def _verified_size(self, artifact: DownloadedArtifact) -> int:
        try:
            actual = artifact.path.stat().st_size
        except OSError as e:
            raise UploadFailed(f"artifact not readable: {e}") from e
        if actual != artifact.byte_size:
            logger.warning(
                f"Artifact {artifact.path} reported {artifact.byte_size} bytes, "
                f"found {actual} on disk; using on-disk size"
            )
        if actual <= 0:
            raise UploadFailed("artifact is empty")
        return actual

    async def relay(
        self,
        artifact: DownloadedArtifact,
        destination: int,
        source_url: str,
        max_part_size: Optional[int] = None,
        backup_channel_id: Optional[int] = None,
    ) -> RelayOutcome:
        """Deliver ``artifact`` to ``destination``.

        ``backup_channel_id`` overrides the backup store's default channel
        for this artifact.

        Raises:
            UploadFailed: on the first failing upload. For split uploads the
                error names the failing part; later parts are never staged
                and earlier parts stay delivered.
        """
        if max_part_size is None:
            max_part_size = self.max_part_size
        if max_part_size <= 0:
            raise ValueError(f"max_part_size must be positive, got {max_part_size}")

        byte_size = self._verified_size(artifact)
        num_parts = count_parts(byte_size, max_part_size)

        if num_parts <= 1:
            with RelayLogContext(
                "upload", name=artifact.declared_name, size=byte_size
            ):
                handle = await self._uploader.upload(
                    artifact.path,
                    artifact.declared_name,
                    destination,
                    source_url,
                    backup_channel_id=backup_channel_id,
                )
            return RelayOutcome(handles=[handle], part_count=1)

        logger.info(
            f"Splitting {artifact.declared_name} ({byte_size} bytes) "
            f"into {num_parts} parts of up to {max_part_size} bytes"
        )
        await self._notify(destination, format_split_notice(num_parts))

        handles = []
        for part in plan_parts(artifact.declared_name, byte_size, max_part_size):
            handles.append(
                await self._relay_part(
                    artifact.path, part, destination, source_url, backup_channel_id
                )
            )
        return RelayOutcome(handles=handles, part_count=num_parts)

    async def _relay_part(
        self,
        source: Path,
        part: UploadPart,
        destination: int,
        source_url: str,
        backup_channel_id: Optional[int] = None,
    ) -> str:
        staging = generate_temp_path(self.temp_dir, Path(part.display_name).suffix)
        try:
            with RelayLogContext(
                "upload_part",
                part=part.index,
                parts=part.total,
                name=part.display_name,
                size=part.length,
            ):
                await asyncio.to_thread(write_part, source, part, staging)
                return await self._uploader.upload(
                    staging,
                    part.display_name,
                    destination,
                    source_url,
                    backup_channel_id=backup_channel_id,
                )
        except UploadFailed as e:
            raise e.for_part(part.index, part.total) from e
        except OSError as e:
            raise UploadFailed(
                f"staging failed: {e}", part_index=part.index, part_count=part.total
            ) from e
        finally:
            remove_file_quietly(staging)

    async def _notify(self, destination: int, text: str) -> None:
        try:
            await self._notifier.notify(destination, text)
        except Exception as e:
            logger.warning(f"Notification to {destination} failed: {e}")
