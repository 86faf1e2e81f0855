"""
Telegram notifier client.

Talks to the Bot API with the user's own bot token, not the control bot's.
"""

from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import BadRequest, TelegramError

from apkbuilder.core.exceptions import NotifierError
from apkbuilder.core.logging import get_logger
from apkbuilder.models.build import NotificationHandle

logger = get_logger(__name__)

TEST_MESSAGE = (
    "🤖 <b>APK Builder - Connection Test</b>\n\n"
    "✅ Your Telegram is properly configured!\n\n"
    "When your Android build completes on GitHub Actions, "
    "the APK file will be sent to this chat automatically. 🚀"
)


class NotifierClient:
    """Send and edit notifier messages."""

    def __init__(self, parse_mode: str = ParseMode.HTML):
        self._parse_mode = parse_mode

    async def send(self, token: str, chat_id: str, text: str) -> NotificationHandle:
        """
        Send a message to the notifier chat.

        Returns:
            Handle for later edits

        Raises:
            NotifierError: If Telegram rejects the message
        """
        try:
            async with Bot(token) as bot:
                message = await bot.send_message(
                    chat_id=chat_id,
                    text=text,
                    parse_mode=self._parse_mode,
                )
        except TelegramError as e:
            raise NotifierError(f"Failed to send Telegram message: {e}") from e
        return NotificationHandle(message_id=str(message.message_id))

    async def edit(self, token: str, chat_id: str, handle: NotificationHandle, text: str) -> None:
        """Edit a sent message in place. Failures are logged, never raised."""
        try:
            async with Bot(token) as bot:
                await bot.edit_message_text(
                    text=text,
                    chat_id=chat_id,
                    message_id=int(handle.message_id),
                    parse_mode=self._parse_mode,
                )
        except BadRequest as e:
            if "message is not modified" in str(e):
                return
            logger.warning(f"Telegram edit rejected for message {handle.message_id}: {e}")
        except TelegramError as e:
            logger.warning(f"Telegram edit failed for message {handle.message_id}: {e}")

    async def test_connection(self, token: str, chat_id: str) -> bool:
        """Send a canned message to validate notifier credentials."""
        try:
            await self.send(token, chat_id, TEST_MESSAGE)
        except NotifierError as e:
            logger.warning(f"Notifier connection test failed: {e}")
            return False
        return True
