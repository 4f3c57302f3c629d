"""Telegram Notifier adapter.

Wraps telegram.Bot to implement the Notifier protocol.
"""

import logging

from telegram import Bot

logger = logging.getLogger(__name__)


class TelegramNotifier:
    """Adapter: telegram.Bot -> Notifier protocol.

    Status messages are best-effort; a failed send is logged and dropped.
    """

    def __init__(self, bot: Bot) -> None:
        self._bot = bot

    async def notify(self, destination: int, text: str) -> None:
        try:
            await self._bot.send_message(chat_id=destination, text=text)
        except Exception as e:
            logger.warning(f"Failed to notify chat {destination}: {e}")
