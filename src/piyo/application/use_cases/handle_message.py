"""Handle inbound message use case."""

import logging

from piyo.application.use_cases.helpers import (
    build_message_memory,
    build_response_memories,
    build_tracked_message,
)
from piyo.config import PersonaConfig, TelegramConfig
from piyo.domain.entities import (
    MESSAGE_HANDLER,
    Decision,
    Message,
    ModelClass,
    SentMessage,
)
from piyo.domain.services import (
    GenerationService,
    ImageDescriptionService,
    InterestTracker,
    MemoryStore,
    MessagingService,
    ResponseDecisionEngine,
    ResponseHooks,
    State,
    StateComposer,
    compose_context,
    split_message,
)
from piyo.domain.services.prompts import MESSAGE_HANDLER_TEMPLATE

logger = logging.getLogger(__name__)


class HandleMessageUseCase:
    """Use case for processing an inbound chat message.

    Tracks the message, stores it as a memory, decides whether to
    respond, and sends the generated response in chunks.
    """

    def __init__(
        self,
        messaging_service: MessagingService,
        memory_store: MemoryStore,
        state_composer: StateComposer,
        decision_engine: ResponseDecisionEngine,
        generation_service: GenerationService,
        interest_tracker: InterestTracker,
        telegram_config: TelegramConfig,
        persona: PersonaConfig,
        agent_id: str,
        bot_user_id: str,
        image_description_service: ImageDescriptionService | None = None,
        hooks: ResponseHooks | None = None,
    ) -> None:
        """Initialize the use case.

        Args:
            messaging_service: Service for sending messages.
            memory_store: Store for memory records.
            state_composer: Builds prompt state.
            decision_engine: Decides whether to respond.
            generation_service: Generates response text.
            interest_tracker: Per-chat interest state.
            telegram_config: Message filtering policy.
            persona: Bot persona configuration.
            agent_id: Agent ID used for memory records.
            bot_user_id: The bot's user ID.
            image_description_service: Describes image attachments (optional).
            hooks: Post-response runtime hooks (optional).
        """
        self._messaging_service = messaging_service
        self._memory_store = memory_store
        self._state_composer = state_composer
        self._decision_engine = decision_engine
        self._generation_service = generation_service
        self._interest_tracker = interest_tracker
        self._telegram_config = telegram_config
        self._persona = persona
        self._agent_id = agent_id
        self._bot_user_id = bot_user_id
        self._image_description_service = image_description_service
        self._hooks = hooks

    async def execute(self, message: Message) -> None:
        """Execute the use case.

        Processing flow:
        1. Filter out messages by policy
        2. Track the message (before any await)
        3. Describe image attachments
        4. Save the message as a memory
        5. Compose state
        6. Decide whether to respond
        7. Generate, send in chunks and save the response
        8. Run runtime hooks

        Errors other than image description failures propagate to the
        caller.

        Args:
            message: The received message.
        """
        if not self._should_process(message):
            return

        # 2. 最初の await より前に記録し、チャット内の到着順を保つ
        if message.has_text():
            self._interest_tracker.track(
                message.chat.id, build_tracked_message(message)
            )

        # 3. Describe image attachments
        image_description = await self._describe_image(message)
        full_text = " ".join(
            part for part in (message.content_text, image_description) if part
        )
        if not full_text:
            return

        # 4. Save the received message
        memory = build_message_memory(message, full_text, self._agent_id)
        await self._memory_store.create_memory(memory)

        # 5. Compose state
        state = await self._state_composer.compose_state(memory)
        state = await self._state_composer.update_recent_message_state(state)

        # 6. Decide
        decision = await self._decision_engine.decide(message, state)
        logger.info(
            "Decision for message %s in chat %s: %s",
            message.id,
            message.chat.id,
            decision.value,
        )

        should_respond = decision == Decision.RESPOND
        if should_respond:
            # 7. Generate and send
            response_text = await self._generate_response(state)
            if not response_text:
                logger.info("Empty response for message %s, skipping", message.id)
                return

            sent_messages = await self._send_in_chunks(message, response_text)
            responses = build_response_memories(
                sent_messages, memory, self._persona.name
            )
            for response in responses:
                await self._memory_store.create_memory(response)

            self._interest_tracker.set_handler(message.chat.id, MESSAGE_HANDLER)

            # 8. Run runtime hooks
            state = await self._state_composer.update_recent_message_state(state)
            if self._hooks is not None:
                await self._hooks.process_actions(memory, responses, state)

        if self._hooks is not None:
            await self._hooks.evaluate(memory, state, should_respond)

    def _should_process(self, message: Message) -> bool:
        """Apply the message filtering policy."""
        if message.user.id == self._bot_user_id:
            return False

        if self._telegram_config.ignore_bot_messages and message.user.is_bot:
            logger.debug("Ignoring bot message %s", message.id)
            return False

        if self._telegram_config.ignore_direct_messages and message.chat.is_private():
            logger.debug("Ignoring direct message %s", message.id)
            return False

        if not message.has_text() and not self._has_image(message):
            logger.debug("Ignoring message %s without content", message.id)
            return False

        return True

    def _has_image(self, message: Message) -> bool:
        return self._image_description_service is not None and any(
            attachment.is_image() for attachment in message.attachments
        )

    async def _describe_image(self, message: Message) -> str | None:
        """Describe the first image attachment.

        Failures are logged and treated as no description.

        Args:
            message: The received message.

        Returns:
            Description text, or None.
        """
        if not self._has_image(message):
            return None
        assert self._image_description_service is not None

        image = next(a for a in message.attachments if a.is_image())
        try:
            image_url = await self._messaging_service.get_file_url(image.file_id)
            description = await self._image_description_service.describe(image_url)
        except Exception:
            logger.exception("Error processing image for message %s", message.id)
            return None

        return f"[Image: {description.title}\n{description.description}]"

    async def _generate_response(self, state: State) -> str:
        """Generate response text.

        Generation failures are logged and treated as an empty response.

        Args:
            state: Composed state.

        Returns:
            Response text (may be empty).
        """
        template = self._persona.templates.message_handler or MESSAGE_HANDLER_TEMPLATE
        prompt = compose_context(template, state)
        try:
            response = await self._generation_service.generate(
                prompt, model_class=ModelClass.LARGE
            )
        except Exception:
            logger.exception("Error generating response")
            return ""
        return (response or "").strip()

    async def _send_in_chunks(self, message: Message, text: str) -> list[SentMessage]:
        """Send text in transport-sized chunks, in order.

        Only the first chunk replies to the original message.

        Args:
            message: The message being replied to.
            text: Response text.

        Returns:
            Sent messages in order.
        """
        sent_messages: list[SentMessage] = []
        for i, chunk in enumerate(split_message(text)):
            sent = await self._messaging_service.send_message(
                chat_id=message.chat.id,
                text=chunk,
                reply_to_message_id=message.id if i == 0 else None,
            )
            sent_messages.append(sent)
        return sent_messages
