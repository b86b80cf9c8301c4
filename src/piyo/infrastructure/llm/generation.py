"""LLM text generation service."""

import logging

from piyo.domain.entities import ModelClass
from piyo.infrastructure.llm.client import LLMClient

logger = logging.getLogger(__name__)


class LiteLLMGenerationService:
    """LiteLLM-based GenerationService implementation.

    Each model class maps to its own client. Classes without a
    dedicated client fall back to the default one.
    """

    def __init__(
        self,
        default_client: LLMClient,
        clients: dict[ModelClass, LLMClient] | None = None,
        *,
        debug_llm_messages: bool = False,
    ) -> None:
        """Initialize the service.

        Args:
            default_client: Client used when no class-specific client exists.
            clients: Class-specific clients.
            debug_llm_messages: If True, log LLM messages at INFO level.
        """
        self._default_client = default_client
        self._clients = clients or {}
        self._debug_llm_messages = debug_llm_messages

    def client_for(self, model_class: ModelClass) -> LLMClient:
        """Get the client used for a model class."""
        return self._clients.get(model_class, self._default_client)

    async def generate(
        self,
        prompt: str,
        model_class: ModelClass = ModelClass.SMALL,
    ) -> str:
        """Generate text for a prompt.

        Args:
            prompt: Complete prompt text, sent as a single user message.
            model_class: Model size to use.

        Returns:
            Generated text.

        Raises:
            LLMError: If generation fails.
        """
        client = self.client_for(model_class)
        messages = [{"role": "user", "content": prompt}]

        if self._should_log():
            self._log_messages(model_class, messages)

        response = await client.complete(messages)

        if self._should_log():
            self._log_response(response)

        return response

    def _should_log(self) -> bool:
        """Check if logging should occur."""
        return self._debug_llm_messages or logger.isEnabledFor(logging.DEBUG)

    def _log_messages(
        self, model_class: ModelClass, messages: list[dict[str, str]]
    ) -> None:
        """Log LLM request messages."""
        log_func = logger.info if self._debug_llm_messages else logger.debug
        log_func("=== LLM Request Messages (%s) ===", model_class.value)
        for i, msg in enumerate(messages):
            log_func("[%d] role=%s", i, msg.get("role", "unknown"))
            log_func("    content: %s", msg.get("content", ""))
        log_func("=== End of Messages ===")

    def _log_response(self, response: str) -> None:
        """Log LLM response."""
        log_func = logger.info if self._debug_llm_messages else logger.debug
        log_func("=== LLM Response ===")
        log_func("response: %s", response)
        log_func("=== End of Response ===")
