"""
Credential entry handlers.

Tokens live in ``context.user_data`` for the lifetime of the bot process
and are never written anywhere else.
"""

from dataclasses import replace

from telegram import Update
from telegram.ext import ContextTypes

from apkbuilder.core.logging import get_logger
from apkbuilder.handlers.common import delete_secret_message, get_credentials, is_allowed, store_credentials
from apkbuilder.models.stage import BuildStage
from apkbuilder.services.telegram.client import NotifierClient

logger = get_logger(__name__)

_notifier_client = NotifierClient()


async def set_token(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /token <github_token> command."""
    if not is_allowed(update):
        return
    args = context.args
    if len(args) != 1:
        await update.message.reply_text("Usage: /token <github_token>")
        return

    store_credentials(context, replace(get_credentials(context), ci_token=args[0].strip()))
    await delete_secret_message(update)
    await update.effective_chat.send_message("🔑 GitHub token saved for this session.")


async def set_notifier(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /notifier <bot_token> <chat_id> command."""
    if not is_allowed(update):
        return
    args = context.args
    if len(args) != 2:
        await update.message.reply_text("Usage: /notifier <bot_token> <chat_id>")
        return

    store_credentials(
        context,
        replace(get_credentials(context), notifier_token=args[0].strip(), notifier_chat_id=args[1].strip()),
    )
    await delete_secret_message(update)
    await update.effective_chat.send_message("💬 Notifier saved for this session. Try /testnotify.")


async def test_notifier(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /testnotify command."""
    if not is_allowed(update):
        return
    credentials = get_credentials(context)
    if not credentials.notifier_token or not credentials.notifier_chat_id:
        await update.message.reply_text("Set the notifier first: /notifier <bot_token> <chat_id>")
        return

    status_msg = await update.message.reply_text(BuildStage.TESTING_NOTIFIER.message)
    ok = await _notifier_client.test_connection(credentials.notifier_token, credentials.notifier_chat_id)
    if ok:
        await status_msg.edit_text(
            "✅ Telegram Connection Successful!\n\n"
            "Test message sent. APK files will be delivered there when builds complete."
        )
    else:
        await status_msg.edit_text(
            "❌ Telegram Connection Failed\n\n"
            "Could not send test message.\n\n"
            "Please check:\n"
            "• Bot token is correct\n"
            "• Chat id is correct\n"
            "• Bot is started (send /start to your bot)"
        )
