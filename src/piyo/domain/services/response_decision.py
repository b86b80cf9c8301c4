"""Response decision engine."""

import logging
from collections.abc import Mapping
from typing import Any

from piyo.domain.entities import MESSAGE_HANDLER, Decision, Message, ModelClass
from piyo.domain.services.interest_tracker import InterestTracker
from piyo.domain.services.prompts import (
    SHOULD_RESPOND_EXAMPLE_USERS,
    SHOULD_RESPOND_INSTRUCTION,
    SHOULD_RESPOND_TEMPLATE,
)
from piyo.domain.services.protocols import GenerationService
from piyo.domain.services.template import compose_context, compose_random_user

logger = logging.getLogger(__name__)

_ACCEPTED_DECISIONS = {Decision.RESPOND.value, Decision.IGNORE.value}


class ResponseDecisionEngine:
    """Decides whether the bot should respond to a message.

    Rules, first match wins:

    1. The bot's ``@username`` appears in the text: RESPOND.
    2. Private chat: RESPOND.
    3. The chat has an active (not timed out) handler: RESPOND while
       that handler is the message handler, otherwise IGNORE.
    4. The message has text or a caption: ask the generation service.
    5. Otherwise: IGNORE.

    Generation failures and unexpected model output resolve to IGNORE.
    """

    def __init__(
        self,
        generation_service: GenerationService,
        interest_tracker: InterestTracker,
        bot_username: str,
        should_respond_template: str | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            generation_service: Service used for the judgment call.
            interest_tracker: Per-chat state, read only.
            bot_username: Bot username without ``@``.
            should_respond_template: Template overriding the default.
        """
        self._generation_service = generation_service
        self._interest_tracker = interest_tracker
        self._bot_username = bot_username
        self._should_respond_template = should_respond_template

    async def decide(self, message: Message, state: Mapping[str, Any]) -> Decision:
        """Decide how to react to a message.

        Args:
            message: Inbound message.
            state: Composed state used to fill the judgment prompt.

        Returns:
            Decision.RESPOND or Decision.IGNORE.
        """
        if message.mentions_username(self._bot_username):
            logger.info("Bot mentioned in chat %s", message.chat.id)
            return Decision.RESPOND

        if message.chat.is_private():
            return Decision.RESPOND

        current_handler = self._interest_tracker.active_handler(message.chat.id)
        if current_handler is not None:
            if self._is_handled_by_message_handler(current_handler):
                return Decision.RESPOND
            return Decision.IGNORE

        if message.has_text():
            return await self._ask_generation(state)

        return Decision.IGNORE

    def _is_handled_by_message_handler(self, current_handler: str) -> bool:
        return current_handler == MESSAGE_HANDLER

    def _build_prompt(self, state: Mapping[str, Any]) -> str:
        template = self._should_respond_template or compose_random_user(
            SHOULD_RESPOND_TEMPLATE, SHOULD_RESPOND_EXAMPLE_USERS
        )
        context = compose_context(template, state)
        return SHOULD_RESPOND_INSTRUCTION.format(context=context)

    async def _ask_generation(self, state: Mapping[str, Any]) -> Decision:
        try:
            prompt = self._build_prompt(state)
            response = await self._generation_service.generate(
                prompt, model_class=ModelClass.SMALL
            )
        except Exception:
            logger.exception("Error generating should-respond decision")
            return Decision.IGNORE

        decision = (response or "").strip().upper()
        if decision not in _ACCEPTED_DECISIONS:
            logger.warning(
                "Invalid response from model: %r. Defaulting to IGNORE", decision
            )
            return Decision.IGNORE

        logger.debug("Should respond decision: %s", decision)
        return Decision(decision)
