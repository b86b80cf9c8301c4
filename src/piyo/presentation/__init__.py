"""Presentation layer."""

from piyo.presentation.telegram_handlers import register_handlers

__all__ = ["register_handlers"]
