"""Helper functions for use cases."""

from piyo.domain.entities import (
    CONTINUE_ACTION,
    Memory,
    MemoryContent,
    Message,
    SentMessage,
    TrackedMessage,
)
from piyo.domain.services import stable_id


def room_id_for(chat_id: str, agent_id: str) -> str:
    """Get the memory room ID for a chat."""
    return stable_id(f"{chat_id}-{agent_id}")


def memory_id_for(message_id: str, agent_id: str) -> str:
    """Get the memory ID for a platform message."""
    return stable_id(f"{message_id}-{agent_id}")


def build_tracked_message(message: Message) -> TrackedMessage:
    """Build the interest tracker record for an inbound message.

    Args:
        message: Inbound message with text or caption.

    Returns:
        TrackedMessage instance.
    """
    return TrackedMessage(
        user_id=stable_id(message.user.id),
        user_name=message.user.name,
        content=MemoryContent(text=message.content_text),
    )


def build_message_memory(message: Message, text: str, agent_id: str) -> Memory:
    """Build the memory record for an inbound message.

    Args:
        message: Inbound message.
        text: Full text including any image description.
        agent_id: Agent ID.

    Returns:
        Memory instance.
    """
    in_reply_to = (
        memory_id_for(message.reply_to_message_id, agent_id)
        if message.reply_to_message_id
        else None
    )
    return Memory(
        id=memory_id_for(message.id, agent_id),
        user_id=stable_id(message.user.id),
        user_name=message.user.name,
        agent_id=agent_id,
        room_id=room_id_for(message.chat.id, agent_id),
        content=MemoryContent(text=text, in_reply_to=in_reply_to),
        created_at=message.timestamp,
    )


def build_response_memories(
    sent_messages: list[SentMessage],
    original: Memory,
    agent_name: str,
    action: str | None = None,
) -> list[Memory]:
    """Build memory records for the chunks of a sent response.

    Every chunk but the last is tagged with the CONTINUE action; the
    last one carries ``action``.

    Args:
        sent_messages: Sent chunks in order.
        original: Memory of the message being replied to.
        agent_name: Bot display name.
        action: Action attached to the response.

    Returns:
        Memory instances in send order.
    """
    memories: list[Memory] = []
    for i, sent in enumerate(sent_messages):
        is_last = i == len(sent_messages) - 1
        memories.append(
            Memory(
                id=memory_id_for(sent.message_id, original.agent_id),
                user_id=original.agent_id,
                user_name=agent_name,
                agent_id=original.agent_id,
                room_id=original.room_id,
                content=MemoryContent(
                    text=sent.text,
                    in_reply_to=original.id,
                    action=action if is_last else CONTINUE_ACTION,
                ),
                created_at=sent.timestamp,
            )
        )
    return memories
