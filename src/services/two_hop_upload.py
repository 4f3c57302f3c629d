"""Two-hop upload: backup channel first, then forward by handle.

The backup channel is the system of record for the raw bytes. The
destination only receives the file_id the backup upload returned, so a
file crosses the network once no matter how many chats receive it.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from ..domain.errors import UploadFailed
from ..domain.ports import BackupStore

logger = logging.getLogger(__name__)

CAPTION_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Telegram rejects document captions longer than this.
MAX_CAPTION_LENGTH = 1024


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_backup_caption(source_url: str, uploaded_at: datetime) -> str:
    """Provenance caption attached to every backup upload."""
    timestamp = uploaded_at.astimezone(timezone.utc).strftime(CAPTION_TIMESTAMP_FORMAT)
    caption = f"🔗 Source: {source_url}\n📅 {timestamp}"
    if len(caption) <= MAX_CAPTION_LENGTH:
        return caption
    # Keep the timestamp; shorten the URL.
    suffix = f"…\n📅 {timestamp}"
    head = f"🔗 Source: {source_url}"
    return head[: MAX_CAPTION_LENGTH - len(suffix)] + suffix


class TwoHopUploader:
    """Uploads a file to the backup store and forwards it to a destination."""

    def __init__(
        self,
        store: BackupStore,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._clock = clock or _utc_now

    async def upload(
        self,
        path: Path,
        display_name: str,
        destination: int,
        source_url: str,
        backup_channel_id: Optional[int] = None,
    ) -> str:
        """Run both hops and return the content handle.

        Raises:
            UploadFailed: if either hop raises, or the backup response
                carried no handle (in which case nothing is forwarded).
        """
        caption = format_backup_caption(source_url, self._clock())

        try:
            handle = await self._store.upload_to_backup(
                path, display_name, caption, backup_channel_id=backup_channel_id
            )
        except Exception as e:
            raise UploadFailed(f"backup upload failed: {e}") from e

        if not handle:
            logger.error(f"Backup upload of {display_name} returned no file handle")
            raise UploadFailed("missing handle")

        try:
            await self._store.forward(handle, destination)
        except Exception as e:
            raise UploadFailed(f"forward to {destination} failed: {e}") from e

        logger.info(f"Delivered {display_name} to {destination} via backup handle")
        return handle
