"""Domain service protocols.

These are the collaborator contracts the core calls into. Concrete
implementations live under ``piyo.infrastructure``.
"""

from typing import Any, Protocol

from piyo.domain.entities import (
    ImageDescription,
    Memory,
    ModelClass,
    SentMessage,
)

State = dict[str, Any]


class MemoryStore(Protocol):
    """Durable memory record storage."""

    async def create_memory(self, memory: Memory) -> None:
        """Persist a memory record.

        Args:
            memory: Record to store. Records with an existing ID are
                left untouched.
        """
        ...

    async def get_memory_by_id(self, memory_id: str) -> Memory | None:
        """Find a memory record by ID."""
        ...

    async def get_memories(self, room_id: str, count: int = 20) -> list[Memory]:
        """Get the most recent memories in a room.

        Args:
            room_id: Room ID.
            count: Maximum number of records.

        Returns:
            Memories in chronological order (oldest first).
        """
        ...


class StateComposer(Protocol):
    """Builds the state object used to fill prompt templates."""

    async def compose_state(self, memory: Memory) -> State:
        """Compose state for an inbound memory.

        Args:
            memory: The inbound memory record.

        Returns:
            Hierarchical state mapping.
        """
        ...

    async def update_recent_message_state(self, state: State) -> State:
        """Refresh the recent-message fields of a state.

        Args:
            state: State returned by ``compose_state``.

        Returns:
            Updated state.
        """
        ...


class GenerationService(Protocol):
    """Text generation."""

    async def generate(
        self,
        prompt: str,
        model_class: ModelClass = ModelClass.SMALL,
    ) -> str:
        """Generate text for a prompt.

        Args:
            prompt: Complete prompt text.
            model_class: Model size to use.

        Returns:
            Generated text.
        """
        ...


class ImageDescriptionService(Protocol):
    """Image description."""

    async def describe(self, image_url: str) -> ImageDescription:
        """Describe the image at a URL."""
        ...


class MessagingService(Protocol):
    """Messaging abstraction (platform-independent).

    Implementations raise ``ChatNotAccessibleError`` when the bot can
    no longer post to the chat.
    """

    async def send_message(
        self,
        chat_id: str,
        text: str,
        reply_to_message_id: str | None = None,
    ) -> SentMessage:
        """Send a message to a chat.

        Args:
            chat_id: Target chat ID.
            text: Message content. Must fit the platform length limit.
            reply_to_message_id: Message to reply to.

        Returns:
            Handle for the sent message.
        """
        ...

    async def leave_chat(self, chat_id: str) -> None:
        """Leave a group chat."""
        ...

    async def get_file_url(self, file_id: str) -> str:
        """Resolve a downloadable URL for a file."""
        ...


class ResponseHooks(Protocol):
    """Post-response side effects provided by the agent runtime."""

    async def process_actions(
        self,
        memory: Memory,
        responses: list[Memory],
        state: State,
    ) -> None:
        """Run actions attached to the generated response."""
        ...

    async def evaluate(
        self,
        memory: Memory,
        state: State,
        did_respond: bool,
    ) -> None:
        """Run evaluators over the handled message."""
        ...
