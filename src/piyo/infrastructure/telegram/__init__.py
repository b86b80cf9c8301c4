"""Telegram integration."""

from piyo.infrastructure.telegram.client import TelegramAppRunner, create_application
from piyo.infrastructure.telegram.event_adapter import TelegramEventAdapter
from piyo.infrastructure.telegram.messaging import TelegramMessagingService

__all__ = [
    "TelegramAppRunner",
    "TelegramEventAdapter",
    "TelegramMessagingService",
    "create_application",
]
