"""Telegram update adapter."""

from datetime import datetime, timezone

from telegram import Chat as TelegramChat
from telegram import Message as TelegramMessage
from telegram import User as TelegramUser

from piyo.domain.entities import (
    Attachment,
    AttachmentKind,
    Chat,
    ChatType,
    Message,
    User,
)

UNKNOWN_USER_NAME = "Unknown User"


class TelegramEventAdapter:
    """Convert Telegram objects to domain entities.

    This adapter translates python-telegram-bot objects into
    platform-independent domain entities.
    """

    def to_chat(self, chat: TelegramChat) -> Chat:
        """Convert a Telegram chat.

        Args:
            chat: Telegram chat.

        Returns:
            Chat entity.
        """
        try:
            chat_type = ChatType(chat.type)
        except ValueError:
            chat_type = ChatType.GROUP
        return Chat(id=str(chat.id), type=chat_type, title=chat.title or "")

    def to_user(self, user: TelegramUser) -> User:
        """Convert a Telegram user.

        The display name prefers the username, then the first name.

        Args:
            user: Telegram user.

        Returns:
            User entity.
        """
        return User(
            id=str(user.id),
            name=user.username or user.first_name or UNKNOWN_USER_NAME,
            is_bot=user.is_bot,
        )

    def to_message(self, message: TelegramMessage) -> Message:
        """Convert a Telegram message.

        Args:
            message: Telegram message with a sender.

        Returns:
            Message entity.

        Raises:
            ValueError: If the message has no sender.
        """
        if message.from_user is None:
            raise ValueError(f"Message {message.message_id} has no sender")

        reply_to = message.reply_to_message
        timestamp = message.date or datetime.now(timezone.utc)

        return Message(
            id=str(message.message_id),
            chat=self.to_chat(message.chat),
            user=self.to_user(message.from_user),
            text=message.text or "",
            caption=message.caption or "",
            timestamp=timestamp,
            reply_to_message_id=str(reply_to.message_id) if reply_to else None,
            attachments=self.extract_attachments(message),
        )

    def extract_attachments(self, message: TelegramMessage) -> list[Attachment]:
        """Extract attachments from a message.

        Only the largest size of a photo is kept.

        Args:
            message: Telegram message.

        Returns:
            List of attachments.
        """
        attachments: list[Attachment] = []
        if message.photo:
            largest = message.photo[-1]
            attachments.append(
                Attachment(file_id=largest.file_id, kind=AttachmentKind.PHOTO)
            )
        if message.document is not None:
            attachments.append(
                Attachment(
                    file_id=message.document.file_id,
                    kind=AttachmentKind.DOCUMENT,
                    mime_type=message.document.mime_type,
                )
            )
        return attachments
