"""Status message shown to the user in the control chat."""

from __future__ import annotations

from telegram import Bot
from telegram.error import BadRequest

from apkbuilder.core.logging import get_logger
from apkbuilder.models.build import BuildSession

logger = get_logger(__name__)


class StatusView:
    """Edits one control chat message to mirror the build session."""

    def __init__(self, bot: Bot, chat_id: int, message_id: int) -> None:
        self._bot = bot
        self._chat_id = chat_id
        self._message_id = message_id
        self._last_text: str | None = None

    async def show(self, text: str) -> None:
        """Edit the status message, sending a fresh one if it is gone."""
        if text == self._last_text:
            return
        try:
            await self._bot.edit_message_text(
                chat_id=self._chat_id,
                message_id=self._message_id,
                text=text,
            )
        except BadRequest as exc:
            if "message is not modified" in str(exc):
                self._last_text = text
                return
            if "message to edit not found" not in str(exc):
                raise
            sent = await self._bot.send_message(chat_id=self._chat_id, text=text)
            self._message_id = sent.message_id
        self._last_text = text

    async def render(self, session: BuildSession) -> None:
        """Session listener for :class:`BuildStageMachine`."""
        await self.show(session.status_text)
