"""Telegram messaging service."""

import logging

from telegram import Bot, ReplyParameters
from telegram.constants import ParseMode
from telegram.error import BadRequest, Forbidden

from piyo.domain.entities import SentMessage, User
from piyo.domain.exceptions import ChatNotAccessibleError
from piyo.domain.services import escape_markdown

logger = logging.getLogger(__name__)

# BadRequest messages that mean the chat itself is gone
_CHAT_NOT_ACCESSIBLE_MESSAGES = (
    "chat not found",
    "group chat was deactivated",
    "bot was kicked",
)


def _is_chat_not_accessible(error: BadRequest) -> bool:
    message = error.message.lower()
    return any(text in message for text in _CHAT_NOT_ACCESSIBLE_MESSAGES)


class TelegramMessagingService:
    """Telegram implementation of MessagingService.

    Sends text with Markdown parse mode. Errors meaning the bot lost
    access to a chat are raised as ChatNotAccessibleError.
    """

    def __init__(self, bot: Bot) -> None:
        """Initialize the service.

        Args:
            bot: Telegram Bot instance.
        """
        self._bot = bot
        self._bot_user: User | None = None

    async def send_message(
        self,
        chat_id: str,
        text: str,
        reply_to_message_id: str | None = None,
    ) -> SentMessage:
        """Send a message to a Telegram chat.

        Args:
            chat_id: Target chat ID.
            text: Message content.
            reply_to_message_id: Message to reply to.

        Returns:
            Handle for the sent message. ``text`` is the unescaped text.

        Raises:
            ChatNotAccessibleError: If the bot cannot post to the chat.
            TelegramError: If the API call fails for other reasons.
        """
        reply_parameters = (
            ReplyParameters(message_id=int(reply_to_message_id))
            if reply_to_message_id
            else None
        )
        try:
            sent = await self._bot.send_message(
                chat_id=chat_id,
                text=escape_markdown(text),
                parse_mode=ParseMode.MARKDOWN,
                reply_parameters=reply_parameters,
            )
        except Forbidden as e:
            raise ChatNotAccessibleError(
                chat_id, f"Cannot access chat {chat_id}: {e.message}"
            ) from e
        except BadRequest as e:
            if _is_chat_not_accessible(e):
                raise ChatNotAccessibleError(
                    chat_id, f"Cannot access chat {chat_id}: {e.message}"
                ) from e
            raise

        return SentMessage(
            message_id=str(sent.message_id),
            text=text,
            timestamp=sent.date,
        )

    async def leave_chat(self, chat_id: str) -> None:
        """Leave a group chat.

        Args:
            chat_id: Chat to leave.
        """
        await self._bot.leave_chat(chat_id=chat_id)
        logger.info("Left chat %s", chat_id)

    async def get_file_url(self, file_id: str) -> str:
        """Resolve a downloadable URL for a file.

        Args:
            file_id: Telegram file ID.

        Returns:
            Download URL.
        """
        file = await self._bot.get_file(file_id)
        if not file.file_path:
            raise ValueError(f"No download path for file {file_id}")
        return file.file_path

    async def get_bot_user(self) -> User:
        """Get the bot's own user.

        Returns:
            User whose name is the bot's username.

        Note:
            The result is cached after the first call.
        """
        if self._bot_user is None:
            me = await self._bot.get_me()
            self._bot_user = User(
                id=str(me.id),
                name=me.username or me.first_name,
                is_bot=True,
            )
        return self._bot_user
