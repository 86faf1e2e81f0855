"""
Build handlers.
"""

from telegram import Update
from telegram.ext import ContextTypes

from apkbuilder.core.config import settings
from apkbuilder.core.exceptions import BuildError, InvalidTransitionError, failure_message
from apkbuilder.core.logging import get_logger
from apkbuilder.handlers.common import get_credentials, is_allowed
from apkbuilder.handlers.ui import StatusView
from apkbuilder.models.build import BuildOptions, BuildSession, BuildTarget
from apkbuilder.models.stage import BuildStage
from apkbuilder.services.github.client import GitHubClient
from apkbuilder.services.notifications import BuildNotifier
from apkbuilder.services.telegram.client import NotifierClient
from apkbuilder.state.machine import BuildStageMachine
from apkbuilder.state.sessions import active_builds

logger = get_logger(__name__)

_notifier_client = NotifierClient()


def _github_client(token: str) -> GitHubClient:
    return GitHubClient(
        token,
        base_url=settings.github_api_url,
        api_version=settings.github_api_version,
        timeout=settings.http_timeout,
    )


async def start_build(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /build <repo_url> [variant] command."""
    if not is_allowed(update):
        return
    args = context.args
    if not args:
        await update.message.reply_text("Usage: /build <repo_url> [debug|release]")
        return

    credentials = get_credentials(context)
    missing = credentials.missing()
    if missing:
        await update.message.reply_text(
            f"Please set all credentials first (missing: {', '.join(missing)}).\n"
            "/token <github_token>\n/notifier <bot_token> <chat_id>"
        )
        return

    try:
        target = BuildTarget.from_url(args[0], args[1] if len(args) > 1 else "debug")
    except ValueError as e:
        await update.message.reply_text(f"❌ {e}")
        return

    chat_id = update.effective_chat.id
    current = active_builds.get(chat_id)
    if current is not None and not current.stage.is_terminal and current.stage is not BuildStage.IDLE:
        await update.message.reply_text("A build is already running. Use /cancel first.")
        return

    status_msg = await update.message.reply_text(BuildStage.IDLE.message)
    view = StatusView(context.bot, status_msg.chat_id, status_msg.message_id)
    github = _github_client(credentials.ci_token)
    machine = BuildStageMachine(
        github,
        BuildNotifier(_notifier_client, credentials.notifier_token, credentials.notifier_chat_id),
        BuildSession(target=target, credentials=credentials),
        options=BuildOptions.from_settings(settings),
        on_change=view.render,
    )
    active_builds.add(chat_id, machine)

    logger.info(f"Build requested for {target.full_name} ({target.build_variant}) in chat {chat_id}")
    await machine.run()


async def show_status(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /status command."""
    if not is_allowed(update):
        return
    machine = active_builds.get(update.effective_chat.id)
    if machine is None:
        await update.message.reply_text(BuildStage.IDLE.message)
        return
    session = machine.session
    await update.message.reply_text(
        f"Stage: {session.stage.message}\n\n{session.status_text}"
    )


async def cancel_build(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /cancel command."""
    if not is_allowed(update):
        return
    machine = active_builds.get(update.effective_chat.id)
    if machine is None or machine.stage.is_terminal or machine.stage is BuildStage.IDLE:
        await update.message.reply_text("No build is running.")
        return

    run_id = machine.poller.last_run_id if machine.poller else None
    await machine.abort()

    if run_id:
        target = machine.session.target
        github = _github_client(get_credentials(context).ci_token)
        try:
            await github.cancel_run(target.owner_login, target.repo_name, run_id)
        except BuildError as e:
            logger.warning(f"Could not cancel run {run_id}: {e}")
            await update.message.reply_text(failure_message(e))
            return
    await update.message.reply_text("🚫 Build cancelled.")


async def reset_build(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /reset command."""
    if not is_allowed(update):
        return
    chat_id = update.effective_chat.id
    machine = active_builds.get(chat_id)
    if machine is None:
        await update.message.reply_text(BuildStage.IDLE.message)
        return
    try:
        await machine.reset()
    except InvalidTransitionError:
        await update.message.reply_text("The build is still running. Use /cancel first.")
        return
    active_builds.pop(chat_id)
    await update.message.reply_text(BuildStage.IDLE.message)


async def list_repos(update: Update, context: ContextTypes.DEFAULT_TYPE) -> None:
    """Handle /repos command."""
    if not is_allowed(update):
        return
    token = get_credentials(context).ci_token
    if not token:
        await update.message.reply_text("Set the GitHub token first: /token <github_token>")
        return

    status_msg = await update.message.reply_text(BuildStage.FETCHING_REPOS.message)
    try:
        repos = await _github_client(token).list_repositories()
    except BuildError as e:
        await status_msg.edit_text(failure_message(e))
        return

    if not repos:
        await status_msg.edit_text("No repositories found for this token.")
        return
    await status_msg.edit_text("📂 Repositories:\n\n" + "\n".join(f"• {name}" for name in sorted(repos)))
