"""
Telegram handlers registration.
"""

from telegram.ext import Application, CommandHandler


def register_handlers(app: Application) -> None:
    """Register all Telegram handlers with the application."""
    from apkbuilder.handlers.base import start, help_command
    from apkbuilder.handlers.build import cancel_build, list_repos, reset_build, show_status, start_build
    from apkbuilder.handlers.credentials import set_notifier, set_token, test_notifier

    app.add_handler(CommandHandler("start", start))
    app.add_handler(CommandHandler("help", help_command))
    app.add_handler(CommandHandler("token", set_token))
    app.add_handler(CommandHandler("notifier", set_notifier))
    app.add_handler(CommandHandler("testnotify", test_notifier, block=False))
    app.add_handler(CommandHandler("repos", list_repos, block=False))
    app.add_handler(CommandHandler("build", start_build, block=False))
    app.add_handler(CommandHandler("status", show_status))
    app.add_handler(CommandHandler("cancel", cancel_build))
    app.add_handler(CommandHandler("reset", reset_build))
