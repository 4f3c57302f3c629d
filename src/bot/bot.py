import logging
from typing import Optional

from telegram import Bot
from telegram.request import HTTPXRequest

logger = logging.getLogger(__name__)

# Uploads of a full 50 MiB part can take minutes on a slow link.
UPLOAD_WRITE_TIMEOUT = 600.0
UPLOAD_READ_TIMEOUT = 120.0


class TelegramBot:
    """Owns the single telegram.Bot used by every relay job.

    Constructed once in the application lifespan and handed to the
    adapters; nothing else creates a Bot.
    """

    def __init__(self, token: Optional[str] = None):
        if not token:
            raise ValueError("Telegram bot token is required")

        self.token = token
        self.bot = Bot(
            token=token,
            request=HTTPXRequest(
                connection_pool_size=16,
                read_timeout=UPLOAD_READ_TIMEOUT,
                write_timeout=UPLOAD_WRITE_TIMEOUT,
            ),
        )
        self.username: Optional[str] = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Initialize the underlying Bot and resolve its username"""
        try:
            await self.bot.initialize()
            self.username = self.bot.username
            self._initialized = True
            logger.info(f"🤖 Bot authorized as @{self.username}")
        except Exception as e:
            logger.error(f"Error initializing bot: {e}")
            raise

    async def shutdown(self) -> None:
        """Shutdown the underlying Bot"""
        if not self._initialized:
            return
        try:
            await self.bot.shutdown()
            self._initialized = False
            logger.info("Bot shutdown")
        except Exception as e:
            logger.error(f"Error shutting down bot: {e}")
