"""LLM integration."""

from piyo.infrastructure.llm.client import LLMClient
from piyo.infrastructure.llm.exceptions import (
    LLMAuthenticationError,
    LLMError,
    LLMInvalidResponseError,
    LLMRateLimitError,
)
from piyo.infrastructure.llm.generation import LiteLLMGenerationService
from piyo.infrastructure.llm.image_description import LiteLLMImageDescriptionService

__all__ = [
    "LLMAuthenticationError",
    "LLMClient",
    "LLMError",
    "LLMInvalidResponseError",
    "LLMRateLimitError",
    "LiteLLMGenerationService",
    "LiteLLMImageDescriptionService",
]
