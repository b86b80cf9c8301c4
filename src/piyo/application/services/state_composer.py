"""Memory-backed state composition."""

import logging

from piyo.config import PersonaConfig
from piyo.domain.entities import Memory
from piyo.domain.services import MemoryStore, State

logger = logging.getLogger(__name__)

NO_MESSAGES = "(no messages yet)"
DEFAULT_THREAD_DEPTH = 10


def format_memory(memory: Memory) -> str:
    """Format a memory with timestamp and user name.

    Args:
        memory: The memory to format.

    Returns:
        Formatted string like "[2024-01-01 12:00:00] username: message text"
    """
    timestamp = memory.created_at.strftime("%Y-%m-%d %H:%M:%S")
    return f"[{timestamp}] {memory.user_name}: {memory.content.text}"


def format_memories(memories: list[Memory]) -> str:
    """Format memories one per line, or a placeholder if empty."""
    if not memories:
        return NO_MESSAGES
    return "\n".join(format_memory(m) for m in memories)


class MemoryStateComposer:
    """StateComposer built on the memory store.

    State keys available to templates:

    - ``agentId``, ``agentName``, ``bio``: persona
    - ``roomId``, ``memoryId``: identifiers of the inbound memory
    - ``senderName``, ``messageText``: the inbound message
    - ``recentMessages``: recent memories in the room
    - ``formattedConversation``: the reply chain ending at the inbound message
    """

    def __init__(
        self,
        memory_store: MemoryStore,
        persona: PersonaConfig,
        recent_message_count: int = 20,
        thread_depth: int = DEFAULT_THREAD_DEPTH,
    ) -> None:
        """Initialize the composer.

        Args:
            memory_store: Store to read memories from.
            persona: Bot persona configuration.
            recent_message_count: Number of recent memories to include.
            thread_depth: Maximum reply-chain length.
        """
        self._memory_store = memory_store
        self._persona = persona
        self._recent_message_count = recent_message_count
        self._thread_depth = thread_depth

    async def compose_state(self, memory: Memory) -> State:
        """Compose state for an inbound memory.

        Args:
            memory: The inbound memory record.

        Returns:
            State mapping.
        """
        recent = await self._memory_store.get_memories(
            memory.room_id, self._recent_message_count
        )
        thread = await self._fetch_thread(memory)

        return {
            "agentId": memory.agent_id,
            "agentName": self._persona.name,
            "bio": self._persona.bio,
            "roomId": memory.room_id,
            "memoryId": memory.id,
            "senderName": memory.user_name,
            "messageText": memory.content.text,
            "recentMessages": format_memories(recent),
            "formattedConversation": format_memories(thread),
        }

    async def update_recent_message_state(self, state: State) -> State:
        """Refresh ``recentMessages`` from the store.

        Args:
            state: State returned by ``compose_state``.

        Returns:
            A new state mapping.
        """
        room_id = state.get("roomId")
        if not room_id:
            logger.warning("State has no roomId, skipping recent message update")
            return dict(state)

        recent = await self._memory_store.get_memories(
            room_id, self._recent_message_count
        )
        return {**state, "recentMessages": format_memories(recent)}

    async def _fetch_thread(self, memory: Memory) -> list[Memory]:
        """Follow ``in_reply_to`` links back from a memory.

        Returns:
            The reply chain, oldest first, ending with ``memory``.
        """
        thread = [memory]
        seen = {memory.id}
        current = memory
        while current.content.in_reply_to and len(thread) < self._thread_depth:
            parent_id = current.content.in_reply_to
            if parent_id in seen:
                break
            parent = await self._memory_store.get_memory_by_id(parent_id)
            if parent is None:
                break
            thread.append(parent)
            seen.add(parent_id)
            current = parent
        thread.reverse()
        return thread
