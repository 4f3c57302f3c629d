"""BackupStore port -- the two hops of an upload."""

from pathlib import Path
from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class BackupStore(Protocol):
    """Stores a file in the backup channel and forwards it by handle."""

    async def upload_to_backup(
        self,
        path: Path,
        display_name: str,
        caption: str,
        backup_channel_id: Optional[int] = None,
    ) -> Optional[str]:
        """Upload a file; return its content handle, or None if the response had none.

        ``backup_channel_id`` overrides the store's configured channel.
        """
        ...

    async def forward(self, handle: str, destination: int) -> None:
        """Deliver a previously uploaded file to ``destination`` by handle."""
        ...
