"""Use cases."""

from piyo.application.use_cases.handle_message import HandleMessageUseCase

__all__ = ["HandleMessageUseCase"]
