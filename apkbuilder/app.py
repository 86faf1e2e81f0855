"""
Application factory and main entry point.
"""

import sys
import asyncio
from telegram.ext import Application

from apkbuilder.core.config import settings
from apkbuilder.core.logging import setup_logging, get_logger
from apkbuilder.handlers import register_handlers
from apkbuilder.state.sessions import active_builds

# Initialize logging
setup_logging(settings.log_level)
logger = get_logger(__name__)


async def create_app() -> Application:
    """Create and configure the Telegram Application."""
    if not settings.tg_token:
        logger.error("TG_TOKEN not set!")
        sys.exit(1)

    application = Application.builder().token(settings.tg_token).build()
    register_handlers(application)

    return application


async def main() -> None:
    """Main application entry point."""
    logger.info("Starting control bot...")

    application = await create_app()

    await application.initialize()
    await application.start()
    await application.updater.start_polling()

    logger.info("Control bot is running.")

    # Keep running until cancelled
    stop_signal = asyncio.Event()
    try:
        await stop_signal.wait()
    except asyncio.CancelledError:
        pass
    finally:
        # No poller may outlive the UI
        active_builds.stop_all()
        await application.updater.stop()
        await application.stop()
        await application.shutdown()
