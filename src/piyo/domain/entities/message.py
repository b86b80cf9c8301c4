"""Message entities."""

from dataclasses import dataclass, field
from datetime import datetime

from piyo.domain.entities.attachment import Attachment
from piyo.domain.entities.chat import Chat
from piyo.domain.entities.user import User


@dataclass(frozen=True)
class Message:
    """Inbound message entity.

    Attributes:
        id: Platform-specific message ID.
        chat: Chat where the message was posted.
        user: User who sent the message.
        text: Message body.
        timestamp: When the message was sent.
        caption: Caption for media messages.
        reply_to_message_id: ID of the message this one replies to.
        attachments: Attachments, largest photo size first.
    """

    id: str
    chat: Chat
    user: User
    text: str
    timestamp: datetime
    caption: str = ""
    reply_to_message_id: str | None = None
    attachments: list[Attachment] = field(default_factory=list)

    @property
    def content_text(self) -> str:
        """Body text, falling back to the caption."""
        return self.text or self.caption

    def has_text(self) -> bool:
        """Check if the message carries text or a caption."""
        return bool(self.content_text)

    def mentions_username(self, username: str) -> bool:
        """Check if ``@username`` appears in the text or caption.

        Args:
            username: Bot username without the leading ``@``.

        Returns:
            True if the username is mentioned.
        """
        if not username:
            return False
        return f"@{username}" in self.content_text


@dataclass(frozen=True)
class SentMessage:
    """Handle for a message sent by the bot.

    Attributes:
        message_id: Platform-specific message ID.
        text: Text that was sent.
        timestamp: When the platform accepted the message.
    """

    message_id: str
    text: str
    timestamp: datetime
