"""python-telegram-bot application and runner."""

import asyncio
import logging

from telegram.ext import Application

from piyo.config import TelegramConfig

logger = logging.getLogger(__name__)


def create_application(config: TelegramConfig) -> Application:
    """Create a Telegram bot application.

    Updates are processed concurrently, one task per update.

    Args:
        config: Telegram connection settings.

    Returns:
        Configured Application instance.
    """
    api_root = config.api_root.rstrip("/")
    return (
        Application.builder()
        .token(config.bot_token)
        .base_url(f"{api_root}/bot")
        .base_file_url(f"{api_root}/file/bot")
        .concurrent_updates(True)
        .build()
    )


class TelegramAppRunner:
    """Manage Telegram application execution.

    This class handles starting and stopping long polling.
    """

    def __init__(self, application: Application) -> None:
        """Initialize the runner.

        Args:
            application: Application instance with handlers registered.
        """
        self._application = application
        self._started = False

    async def start(self) -> None:
        """Start the application and begin polling.

        Pending updates from before the start are dropped.
        """
        await self._application.initialize()
        await self._application.start()
        assert self._application.updater is not None
        await self._application.updater.start_polling(drop_pending_updates=True)
        self._started = True
        logger.info("Telegram polling started")

    async def stop(self) -> None:
        """Stop polling and shut down the application."""
        if not self._started:
            return
        self._started = False
        if self._application.updater is not None and self._application.updater.running:
            await self._application.updater.stop()
        if self._application.running:
            await self._application.stop()
        await self._application.shutdown()
        logger.info("Telegram application stopped")

    async def close(self, timeout: float = 5.0) -> bool:
        """Stop with a timeout.

        Args:
            timeout: Maximum seconds to wait for shutdown.

        Returns:
            True if stopped successfully, False if timed out.
        """
        try:
            await asyncio.wait_for(self.stop(), timeout=timeout)
            return True
        except asyncio.TimeoutError:
            return False
