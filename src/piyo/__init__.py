"""Telegram chat bot that decides when to join the conversation."""
