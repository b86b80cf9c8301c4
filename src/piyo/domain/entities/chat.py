"""Chat entity."""

from dataclasses import dataclass
from enum import Enum


class ChatType(Enum):
    """Telegram chat types."""

    PRIVATE = "private"
    GROUP = "group"
    SUPERGROUP = "supergroup"
    CHANNEL = "channel"


@dataclass(frozen=True)
class Chat:
    """Chat entity.

    Attributes:
        id: Platform-specific chat ID (stringified).
        type: Chat type.
        title: Chat title (empty for private chats).
    """

    id: str
    type: ChatType
    title: str = ""

    def is_private(self) -> bool:
        """Check if this chat is a one-to-one conversation."""
        return self.type == ChatType.PRIVATE
