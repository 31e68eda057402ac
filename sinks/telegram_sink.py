"""
Telegram notifier for sending run summaries to a Telegram chat.
"""

import logging
from typing import Optional

from telegram import Bot
from telegram.error import TelegramError

from core.interfaces import Notifier


logger = logging.getLogger(__name__)


class TelegramNotifier(Notifier):
    """Notifier that posts the run summary to a Telegram chat."""

    name = "TelegramNotifier"

    def __init__(
        self,
        bot_token: Optional[str] = None,
        chat_id: Optional[str] = None,
        bot: Optional[Bot] = None,
    ):
        self.bot = bot or (Bot(token=bot_token) if bot_token else None)
        self.chat_id = chat_id

    @property
    def configured(self) -> bool:
        return bool(self.bot and self.chat_id)

    async def send(self, text: str, subject: Optional[str] = None) -> None:
        """Send the summary; skipped with a warning when not configured."""
        if not self.configured:
            logger.warning("Telegram bot or chat_id not configured, skipping notification")
            return

        message = f"*{subject}*\n\n{text}" if subject else text
        try:
            await self.bot.send_message(
                chat_id=self.chat_id,
                text=message,
                parse_mode="Markdown"
            )
        except TelegramError as e:
            logger.error(f"Failed to send Telegram notification: {e}")
            raise
        logger.info("Run summary sent to Telegram")
