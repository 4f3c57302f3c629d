"""Telegram BackupStore adapter.

Uploads files to the backup channel with sendDocument and forwards them
to the destination chat by file_id, so the bytes cross the network once.
"""

import logging
from pathlib import Path
from typing import Optional

from telegram import Bot, Message

logger = logging.getLogger(__name__)


def extract_file_id(message: Optional[Message]) -> Optional[str]:
    """Return the file_id of the file attached to ``message``, if any.

    Telegram may answer a sendDocument with an audio or video attachment
    instead of a document depending on the file's MIME type.
    """
    if message is None:
        return None
    attachment = message.document or message.audio or message.video
    if attachment is None:
        return None
    return attachment.file_id or None


class TelegramBackupStore:
    """Adapter: telegram.Bot -> BackupStore protocol."""

    def __init__(self, bot: Bot, backup_channel_id: int) -> None:
        self._bot = bot
        self._backup_channel_id = backup_channel_id

    @property
    def backup_channel_id(self) -> int:
        return self._backup_channel_id

    async def upload_to_backup(
        self,
        path: Path,
        display_name: str,
        caption: str,
        backup_channel_id: Optional[int] = None,
    ) -> Optional[str]:
        chat_id = backup_channel_id or self._backup_channel_id
        with open(path, "rb") as document:
            message = await self._bot.send_document(
                chat_id=chat_id,
                document=document,
                filename=display_name,
                caption=caption,
            )
        file_id = extract_file_id(message)
        logger.debug(f"Backup upload of {display_name} returned file_id={file_id}")
        return file_id

    async def forward(self, handle: str, destination: int) -> None:
        await self._bot.send_document(chat_id=destination, document=handle)
