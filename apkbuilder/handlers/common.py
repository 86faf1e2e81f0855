"""
Common utilities for handlers.
"""

from telegram import Update
from telegram.error import TelegramError
from telegram.ext import ContextTypes

from apkbuilder.core.config import settings
from apkbuilder.core.logging import get_logger
from apkbuilder.models.build import Credentials

logger = get_logger(__name__)

_CREDENTIALS_KEY = "credentials"


def is_allowed(update: Update) -> bool:
    """Check the user against ALLOWED_USER_IDS; empty means everyone."""
    allowed = settings.allowed_ids
    if not allowed:
        return True
    user = update.effective_user
    return user is not None and user.id in allowed


def get_credentials(context: ContextTypes.DEFAULT_TYPE) -> Credentials:
    """Credentials entered in this session, kept in memory only."""
    return context.user_data.get(_CREDENTIALS_KEY) or Credentials()


def store_credentials(context: ContextTypes.DEFAULT_TYPE, credentials: Credentials) -> None:
    context.user_data[_CREDENTIALS_KEY] = credentials


async def delete_secret_message(update: Update) -> None:
    """Remove a message holding a token from the chat history."""
    message = update.effective_message
    if message is None:
        return
    try:
        await message.delete()
    except TelegramError as e:
        logger.warning(f"Could not delete message with secret: {e}")
