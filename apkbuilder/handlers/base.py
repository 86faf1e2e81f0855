"""
Base Telegram command handlers.
"""

from telegram import Update
from telegram.ext import ContextTypes

from apkbuilder.models.stage import BuildStage

HELP_TEXT = (
    "Commands:\n"
    "/token <github_token> - Set the GitHub token (repo and workflow scopes)\n"
    "/notifier <bot_token> <chat_id> - Set where build notifications go\n"
    "/testnotify - Send a test notification\n"
    "/repos - List repositories the token can see\n"
    "/build <repo_url> [debug|release] - Start a build\n"
    "/status - Show the current build status\n"
    "/cancel - Stop the current build\n"
    "/reset - Clear a finished build"
)


async def start(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /start command."""
    await update.message.reply_text(
        f"{BuildStage.IDLE.message}\n\n"
        "Set your tokens, then send /build with a GitHub repository URL.\n\n"
        f"{HELP_TEXT}"
    )


async def help_command(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /help command."""
    await update.message.reply_text(HELP_TEXT)
