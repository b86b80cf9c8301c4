"""Tests for HandleMessageUseCase."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any
from unittest.mock import AsyncMock, Mock, patch

import pytest

from piyo.application.use_cases import HandleMessageUseCase
from piyo.application.use_cases.helpers import memory_id_for, room_id_for
from piyo.config import PersonaConfig, TelegramConfig, TemplatesConfig
from piyo.domain.entities import (
    CONTINUE_ACTION,
    MESSAGE_HANDLER,
    Attachment,
    AttachmentKind,
    Chat,
    ChatType,
    ImageDescription,
    Message,
    ModelClass,
    SentMessage,
    User,
)
from piyo.domain.exceptions import ChatNotAccessibleError
from piyo.domain.services import InterestTracker, ResponseDecisionEngine, stable_id

BOT_USER_ID = "777"
BOT_USERNAME = "piyo_bot"
AGENT_ID = stable_id(BOT_USER_ID)
TIMESTAMP = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeGeneration:
    """Generation stub answering per model class."""

    def __init__(self) -> None:
        self.decision = "RESPOND"
        self.response = "Hello from piyo!"
        self.generate = AsyncMock(side_effect=self._generate)

    async def _generate(
        self, prompt: str, model_class: ModelClass = ModelClass.SMALL
    ) -> str:
        if model_class == ModelClass.SMALL:
            return self.decision
        return self.response

    def calls_for(self, model_class: ModelClass) -> list[Any]:
        return [
            call
            for call in self.generate.call_args_list
            if call.kwargs.get("model_class") == model_class
        ]


@pytest.fixture
def mock_messaging_service() -> Mock:
    """Create mock messaging service returning sequential message IDs."""
    service = Mock()
    counter = iter(range(1000, 2000))

    async def send_message(
        chat_id: str, text: str, reply_to_message_id: str | None = None
    ) -> SentMessage:
        index = next(counter)
        return SentMessage(
            message_id=str(index),
            text=text,
            timestamp=TIMESTAMP + timedelta(seconds=index - 999),
        )

    service.send_message = AsyncMock(side_effect=send_message)
    service.get_file_url = AsyncMock(return_value="https://files.example/photo.jpg")
    return service


@pytest.fixture
def mock_memory_store() -> Mock:
    """Create mock memory store."""
    store = Mock()
    store.create_memory = AsyncMock()
    store.get_memory_by_id = AsyncMock(return_value=None)
    store.get_memories = AsyncMock(return_value=[])
    return store


@pytest.fixture
def mock_state_composer() -> Mock:
    """Create mock state composer."""
    composer = Mock()
    composer.compose_state = AsyncMock(
        side_effect=lambda memory: {
            "agentName": "piyo",
            "bio": "A small chick.",
            "roomId": memory.room_id,
            "senderName": memory.user_name,
            "messageText": memory.content.text,
            "recentMessages": "(no messages yet)",
            "formattedConversation": "(no messages yet)",
        }
    )
    composer.update_recent_message_state = AsyncMock(side_effect=lambda state: state)
    return composer


@pytest.fixture
def generation() -> FakeGeneration:
    """Create generation stub."""
    return FakeGeneration()


@pytest.fixture
def tracker() -> InterestTracker:
    """Create interest tracker."""
    return InterestTracker()


@pytest.fixture
def decision_engine(
    generation: FakeGeneration, tracker: InterestTracker
) -> ResponseDecisionEngine:
    """Create decision engine."""
    return ResponseDecisionEngine(generation, tracker, BOT_USERNAME)


@pytest.fixture
def telegram_config() -> TelegramConfig:
    """Create Telegram config."""
    return TelegramConfig(bot_token="token", ignore_bot_messages=True)


@pytest.fixture
def persona() -> PersonaConfig:
    """Create persona config."""
    return PersonaConfig(name="piyo", bio="A small chick.")


@pytest.fixture
def mock_image_service() -> Mock:
    """Create mock image description service."""
    service = Mock()
    service.describe = AsyncMock(
        return_value=ImageDescription(title="A cat", description="A grey cat.")
    )
    return service


@pytest.fixture
def mock_hooks() -> Mock:
    """Create mock runtime hooks."""
    hooks = Mock()
    hooks.process_actions = AsyncMock()
    hooks.evaluate = AsyncMock()
    return hooks


def build_use_case(
    mock_messaging_service: Mock,
    mock_memory_store: Mock,
    mock_state_composer: Mock,
    decision_engine: ResponseDecisionEngine,
    generation: FakeGeneration,
    tracker: InterestTracker,
    telegram_config: TelegramConfig,
    persona: PersonaConfig,
    **kwargs: Any,
) -> HandleMessageUseCase:
    return HandleMessageUseCase(
        messaging_service=mock_messaging_service,
        memory_store=mock_memory_store,
        state_composer=mock_state_composer,
        decision_engine=decision_engine,
        generation_service=generation,
        interest_tracker=tracker,
        telegram_config=telegram_config,
        persona=persona,
        agent_id=AGENT_ID,
        bot_user_id=BOT_USER_ID,
        **kwargs,
    )


@pytest.fixture
def use_case(
    mock_messaging_service: Mock,
    mock_memory_store: Mock,
    mock_state_composer: Mock,
    decision_engine: ResponseDecisionEngine,
    generation: FakeGeneration,
    tracker: InterestTracker,
    telegram_config: TelegramConfig,
    persona: PersonaConfig,
    mock_image_service: Mock,
    mock_hooks: Mock,
) -> HandleMessageUseCase:
    """Create use case with image service and hooks."""
    return build_use_case(
        mock_messaging_service,
        mock_memory_store,
        mock_state_composer,
        decision_engine,
        generation,
        tracker,
        telegram_config,
        persona,
        image_description_service=mock_image_service,
        hooks=mock_hooks,
    )


def make_message(
    text: str = "hello everyone",
    chat_type: ChatType = ChatType.GROUP,
    user: User | None = None,
    caption: str = "",
    attachments: list[Attachment] | None = None,
    message_id: str = "10",
) -> Message:
    chat_id = "42" if chat_type == ChatType.PRIVATE else "-100"
    return Message(
        id=message_id,
        chat=Chat(id=chat_id, type=chat_type, title="group"),
        user=user or User(id="42", name="alice"),
        text=text,
        caption=caption,
        timestamp=TIMESTAMP,
        attachments=attachments or [],
    )


def stored_memories(mock_memory_store: Mock) -> list[Any]:
    return [call.args[0] for call in mock_memory_store.create_memory.call_args_list]


class TestFiltering:
    """Messages dropped before any processing."""

    async def test_own_message_is_dropped(
        self,
        use_case: HandleMessageUseCase,
        tracker: InterestTracker,
        mock_memory_store: Mock,
    ) -> None:
        """Test that the bot ignores its own messages."""
        await use_case.execute(make_message(user=User(id=BOT_USER_ID, name="piyo")))

        assert len(tracker) == 0
        mock_memory_store.create_memory.assert_not_called()

    async def test_bot_message_is_dropped_when_configured(
        self,
        use_case: HandleMessageUseCase,
        tracker: InterestTracker,
        mock_memory_store: Mock,
    ) -> None:
        """Test that other bots are ignored with ignore_bot_messages."""
        await use_case.execute(
            make_message(user=User(id="99", name="other_bot", is_bot=True))
        )

        assert len(tracker) == 0
        mock_memory_store.create_memory.assert_not_called()

    async def test_direct_message_is_dropped_when_configured(
        self,
        mock_messaging_service: Mock,
        mock_memory_store: Mock,
        mock_state_composer: Mock,
        decision_engine: ResponseDecisionEngine,
        generation: FakeGeneration,
        tracker: InterestTracker,
        persona: PersonaConfig,
    ) -> None:
        """Test that private chats are ignored with ignore_direct_messages."""
        use_case = build_use_case(
            mock_messaging_service,
            mock_memory_store,
            mock_state_composer,
            decision_engine,
            generation,
            tracker,
            TelegramConfig(bot_token="token", ignore_direct_messages=True),
            persona,
        )

        await use_case.execute(make_message(chat_type=ChatType.PRIVATE))

        mock_memory_store.create_memory.assert_not_called()
        mock_messaging_service.send_message.assert_not_called()

    async def test_private_empty_message_dropped_before_decision(
        self,
        use_case: HandleMessageUseCase,
        decision_engine: ResponseDecisionEngine,
        mock_memory_store: Mock,
        mock_messaging_service: Mock,
    ) -> None:
        """Test that a private message without content never reaches the engine."""
        with patch.object(decision_engine, "decide", new=AsyncMock()) as decide:
            await use_case.execute(make_message(text="", chat_type=ChatType.PRIVATE))

        decide.assert_not_called()
        mock_memory_store.create_memory.assert_not_called()
        mock_messaging_service.send_message.assert_not_called()

    async def test_non_image_document_without_text_is_dropped(
        self,
        use_case: HandleMessageUseCase,
        mock_memory_store: Mock,
        mock_image_service: Mock,
    ) -> None:
        """Test that a document that is not an image counts as no content."""
        document = Attachment(
            file_id="f1", kind=AttachmentKind.DOCUMENT, mime_type="application/pdf"
        )

        await use_case.execute(make_message(text="", attachments=[document]))

        mock_image_service.describe.assert_not_called()
        mock_memory_store.create_memory.assert_not_called()


class TestRespond:
    """Messages the bot answers."""

    async def test_mention_responds_without_judgment(
        self,
        use_case: HandleMessageUseCase,
        generation: FakeGeneration,
        mock_messaging_service: Mock,
    ) -> None:
        """Test that a mention is answered and only the response is generated."""
        await use_case.execute(make_message(text=f"@{BOT_USERNAME} hi!"))

        assert generation.calls_for(ModelClass.SMALL) == []
        assert len(generation.calls_for(ModelClass.LARGE)) == 1
        mock_messaging_service.send_message.assert_awaited_once_with(
            chat_id="-100", text="Hello from piyo!", reply_to_message_id="10"
        )

    async def test_memories_are_stored(
        self,
        use_case: HandleMessageUseCase,
        mock_memory_store: Mock,
    ) -> None:
        """Test that the inbound message and the response are stored."""
        await use_case.execute(make_message(text=f"@{BOT_USERNAME} hi!"))

        inbound, response = stored_memories(mock_memory_store)
        assert inbound.id == memory_id_for("10", AGENT_ID)
        assert inbound.room_id == room_id_for("-100", AGENT_ID)
        assert inbound.content.text == f"@{BOT_USERNAME} hi!"
        assert response.id == memory_id_for("1000", AGENT_ID)
        assert response.user_id == AGENT_ID
        assert response.user_name == "piyo"
        assert response.content.in_reply_to == inbound.id
        assert response.content.text == "Hello from piyo!"
        assert response.content.action is None

    async def test_response_prompt_uses_state(
        self,
        use_case: HandleMessageUseCase,
        generation: FakeGeneration,
    ) -> None:
        """Test that the default response prompt is filled from state."""
        await use_case.execute(make_message(text=f"@{BOT_USERNAME} hi!"))

        prompt = generation.calls_for(ModelClass.LARGE)[0].args[0]
        assert "# About piyo:" in prompt
        assert f"alice: @{BOT_USERNAME} hi!" in prompt

    async def test_custom_response_template(
        self,
        mock_messaging_service: Mock,
        mock_memory_store: Mock,
        mock_state_composer: Mock,
        decision_engine: ResponseDecisionEngine,
        generation: FakeGeneration,
        tracker: InterestTracker,
        telegram_config: TelegramConfig,
    ) -> None:
        """Test that a persona template overrides the default."""
        persona = PersonaConfig(
            name="piyo",
            templates=TemplatesConfig(message_handler="Answer {{senderName}}."),
        )
        use_case = build_use_case(
            mock_messaging_service,
            mock_memory_store,
            mock_state_composer,
            decision_engine,
            generation,
            tracker,
            telegram_config,
            persona,
        )

        await use_case.execute(make_message(chat_type=ChatType.PRIVATE))

        assert generation.calls_for(ModelClass.LARGE)[0].args[0] == "Answer alice."

    async def test_marks_message_handler(
        self,
        use_case: HandleMessageUseCase,
        tracker: InterestTracker,
    ) -> None:
        """Test that replying engages the chat."""
        await use_case.execute(make_message(text=f"@{BOT_USERNAME} hi!"))

        assert tracker.active_handler("-100") == MESSAGE_HANDLER

    async def test_engaged_chat_responds_without_judgment(
        self,
        use_case: HandleMessageUseCase,
        generation: FakeGeneration,
        mock_messaging_service: Mock,
    ) -> None:
        """Test that a follow-up in an engaged chat is answered directly."""
        await use_case.execute(make_message(text=f"@{BOT_USERNAME} hi!"))
        await use_case.execute(make_message(text="and another thing", message_id="11"))

        assert generation.calls_for(ModelClass.SMALL) == []
        assert mock_messaging_service.send_message.await_count == 2

    async def test_long_response_is_chunked(
        self,
        use_case: HandleMessageUseCase,
        generation: FakeGeneration,
        mock_messaging_service: Mock,
        mock_memory_store: Mock,
    ) -> None:
        """Test that a response over the limit is sent in order as chunks."""
        generation.response = "a\n" + "b" * 4096

        await use_case.execute(make_message(chat_type=ChatType.PRIVATE))

        calls = mock_messaging_service.send_message.call_args_list
        assert [c.kwargs["text"] for c in calls] == ["a", "b" * 4096]
        assert [c.kwargs["reply_to_message_id"] for c in calls] == ["10", None]

        responses = stored_memories(mock_memory_store)[1:]
        assert [m.content.action for m in responses] == [CONTINUE_ACTION, None]
        assert [m.content.text for m in responses] == ["a", "b" * 4096]

    async def test_judgment_respond(
        self,
        use_case: HandleMessageUseCase,
        generation: FakeGeneration,
        mock_messaging_service: Mock,
    ) -> None:
        """Test that a group message answered by the model gets a reply."""
        await use_case.execute(make_message())

        assert len(generation.calls_for(ModelClass.SMALL)) == 1
        mock_messaging_service.send_message.assert_awaited_once()

    async def test_hooks_are_called(
        self,
        use_case: HandleMessageUseCase,
        mock_hooks: Mock,
        mock_memory_store: Mock,
    ) -> None:
        """Test that runtime hooks see the exchange."""
        await use_case.execute(make_message(chat_type=ChatType.PRIVATE))

        inbound, response = stored_memories(mock_memory_store)
        mock_hooks.process_actions.assert_awaited_once()
        memory, responses, _state = mock_hooks.process_actions.call_args.args
        assert memory == inbound
        assert responses == [response]
        mock_hooks.evaluate.assert_awaited_once()
        assert mock_hooks.evaluate.call_args.args[0] == inbound
        assert mock_hooks.evaluate.call_args.args[2] is True


class TestNoResponse:
    """Messages the bot does not answer."""

    async def test_judgment_ignore(
        self,
        use_case: HandleMessageUseCase,
        generation: FakeGeneration,
        mock_messaging_service: Mock,
        mock_memory_store: Mock,
        mock_hooks: Mock,
        tracker: InterestTracker,
    ) -> None:
        """Test that the message is stored and tracked but not answered."""
        generation.decision = "IGNORE"

        await use_case.execute(make_message())

        mock_messaging_service.send_message.assert_not_called()
        assert len(stored_memories(mock_memory_store)) == 1
        state = tracker.get("-100")
        assert state is not None
        assert [m.content.text for m in state.messages] == ["hello everyone"]
        assert tracker.active_handler("-100") is None
        mock_hooks.process_actions.assert_not_called()
        mock_hooks.evaluate.assert_awaited_once()
        assert mock_hooks.evaluate.call_args.args[2] is False

    async def test_empty_generation(
        self,
        use_case: HandleMessageUseCase,
        generation: FakeGeneration,
        mock_messaging_service: Mock,
        tracker: InterestTracker,
    ) -> None:
        """Test that an empty response sends nothing."""
        generation.response = "   "

        await use_case.execute(make_message(chat_type=ChatType.PRIVATE))

        mock_messaging_service.send_message.assert_not_called()
        assert tracker.active_handler("42") is None

    async def test_generation_error(
        self,
        use_case: HandleMessageUseCase,
        generation: FakeGeneration,
        mock_messaging_service: Mock,
    ) -> None:
        """Test that a failing response generation sends nothing."""

        async def fail(prompt: str, model_class: ModelClass = ModelClass.SMALL) -> str:
            raise RuntimeError("LLM down")

        generation.generate.side_effect = fail

        await use_case.execute(make_message(chat_type=ChatType.PRIVATE))

        mock_messaging_service.send_message.assert_not_called()


class TestOrdering:
    """Intake ordering across overlapping messages."""

    async def test_tracks_arrival_order_while_processing_overlaps(
        self,
        use_case: HandleMessageUseCase,
        tracker: InterestTracker,
        mock_memory_store: Mock,
    ) -> None:
        """Test that messages are tracked before the first suspension point."""
        release = asyncio.Event()

        async def blocked_create_memory(memory: Any) -> None:
            await release.wait()

        mock_memory_store.create_memory = AsyncMock(side_effect=blocked_create_memory)

        first = asyncio.create_task(
            use_case.execute(make_message(text="first", message_id="10"))
        )
        second = asyncio.create_task(
            use_case.execute(make_message(text="second", message_id="11"))
        )
        await asyncio.sleep(0)

        state = tracker.get("-100")
        assert state is not None
        assert [m.content.text for m in state.messages] == ["first", "second"]
        assert not first.done()
        assert not second.done()

        release.set()
        await asyncio.gather(first, second)

        assert mock_memory_store.create_memory.await_count >= 2


class TestImages:
    """Image attachment handling."""

    async def test_photo_without_text_is_described(
        self,
        use_case: HandleMessageUseCase,
        mock_messaging_service: Mock,
        mock_image_service: Mock,
        mock_memory_store: Mock,
        tracker: InterestTracker,
    ) -> None:
        """Test that the description becomes the memory text."""
        photo = Attachment(file_id="p1", kind=AttachmentKind.PHOTO)

        await use_case.execute(
            make_message(text="", chat_type=ChatType.PRIVATE, attachments=[photo])
        )

        mock_messaging_service.get_file_url.assert_awaited_once_with("p1")
        mock_image_service.describe.assert_awaited_once_with(
            "https://files.example/photo.jpg"
        )
        inbound = stored_memories(mock_memory_store)[0]
        assert inbound.content.text == "[Image: A cat\nA grey cat.]"
        assert len(tracker) == 0

    async def test_caption_and_description_are_joined(
        self,
        use_case: HandleMessageUseCase,
        mock_memory_store: Mock,
    ) -> None:
        """Test that the caption comes before the description."""
        photo = Attachment(file_id="p1", kind=AttachmentKind.PHOTO)

        await use_case.execute(
            make_message(text="", caption="my cat", attachments=[photo])
        )

        inbound = stored_memories(mock_memory_store)[0]
        assert inbound.content.text == "my cat [Image: A cat\nA grey cat.]"

    async def test_description_error_keeps_caption(
        self,
        use_case: HandleMessageUseCase,
        mock_image_service: Mock,
        mock_memory_store: Mock,
    ) -> None:
        """Test that a failing description is skipped."""
        mock_image_service.describe.side_effect = RuntimeError("vision down")
        photo = Attachment(file_id="p1", kind=AttachmentKind.PHOTO)

        await use_case.execute(
            make_message(text="", caption="my cat", attachments=[photo])
        )

        inbound = stored_memories(mock_memory_store)[0]
        assert inbound.content.text == "my cat"

    async def test_description_error_without_text_drops_message(
        self,
        use_case: HandleMessageUseCase,
        mock_image_service: Mock,
        mock_memory_store: Mock,
    ) -> None:
        """Test that no text and no description ends processing."""
        mock_image_service.describe.side_effect = RuntimeError("vision down")
        photo = Attachment(file_id="p1", kind=AttachmentKind.PHOTO)

        await use_case.execute(make_message(text="", attachments=[photo]))

        mock_memory_store.create_memory.assert_not_called()

    async def test_photo_without_image_service_is_dropped(
        self,
        mock_messaging_service: Mock,
        mock_memory_store: Mock,
        mock_state_composer: Mock,
        decision_engine: ResponseDecisionEngine,
        generation: FakeGeneration,
        tracker: InterestTracker,
        telegram_config: TelegramConfig,
        persona: PersonaConfig,
    ) -> None:
        """Test that photos are ignored when no vision model is configured."""
        use_case = build_use_case(
            mock_messaging_service,
            mock_memory_store,
            mock_state_composer,
            decision_engine,
            generation,
            tracker,
            telegram_config,
            persona,
        )
        photo = Attachment(file_id="p1", kind=AttachmentKind.PHOTO)

        await use_case.execute(make_message(text="", attachments=[photo]))

        mock_messaging_service.get_file_url.assert_not_called()
        mock_memory_store.create_memory.assert_not_called()


class TestErrors:
    """Errors raised to the caller."""

    async def test_send_error_propagates(
        self,
        use_case: HandleMessageUseCase,
        mock_messaging_service: Mock,
        tracker: InterestTracker,
    ) -> None:
        """Test that losing access to the chat is raised."""
        mock_messaging_service.send_message.side_effect = ChatNotAccessibleError(
            "-100"
        )

        with pytest.raises(ChatNotAccessibleError):
            await use_case.execute(make_message(text=f"@{BOT_USERNAME} hi"))

        assert tracker.active_handler("-100") is None

    async def test_store_error_propagates(
        self,
        use_case: HandleMessageUseCase,
        mock_memory_store: Mock,
        tracker: InterestTracker,
    ) -> None:
        """Test that persistence errors are raised after tracking."""
        mock_memory_store.create_memory.side_effect = RuntimeError("db down")

        with pytest.raises(RuntimeError):
            await use_case.execute(make_message())

        assert "-100" in tracker
