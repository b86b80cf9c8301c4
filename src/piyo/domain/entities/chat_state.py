"""Per-chat interest state."""

from collections import deque
from dataclasses import dataclass, field

from piyo.domain.entities.memory import MemoryContent

MESSAGE_HANDLER = "message_handler"


@dataclass(frozen=True)
class TrackedMessage:
    """Lightweight record of a message seen in a chat.

    Attributes:
        user_id: Stable ID of the sender.
        user_name: Display name of the sender.
        content: Message content.
    """

    user_id: str
    user_name: str
    content: MemoryContent


@dataclass
class ChatState:
    """Rolling state for a single chat.

    Attributes:
        chat_id: Chat ID.
        current_handler: Response mode currently active for the chat, if any.
        handler_updated_at: Epoch seconds when the handler was last set.
        last_message_sent: Epoch seconds of the latest tracked activity.
        messages: Tracked messages, oldest first. Bounded by ``maxlen``.
    """

    chat_id: str
    current_handler: str | None = None
    handler_updated_at: float = 0.0
    last_message_sent: float = 0.0
    messages: deque[TrackedMessage] = field(default_factory=deque)
