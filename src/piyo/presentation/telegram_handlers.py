"""Telegram update handlers."""

import logging

from telegram import Update
from telegram.constants import ChatMemberStatus
from telegram.error import Forbidden
from telegram.ext import (
    Application,
    ChatMemberHandler,
    ContextTypes,
    MessageHandler,
    filters,
)

from piyo.application.services import GroupAuthorizer
from piyo.application.use_cases import HandleMessageUseCase
from piyo.domain.exceptions import ChatNotAccessibleError
from piyo.domain.services import InterestTracker
from piyo.infrastructure.telegram import TelegramEventAdapter

logger = logging.getLogger(__name__)

ERROR_NOTICE = "An error occurred while processing your message."

_REMOVED_STATUSES = frozenset({ChatMemberStatus.LEFT, ChatMemberStatus.BANNED})


def _is_chat_not_accessible(error: Exception) -> bool:
    return isinstance(error, (ChatNotAccessibleError, Forbidden))


def register_handlers(
    application: Application,
    use_case: HandleMessageUseCase,
    event_adapter: TelegramEventAdapter,
    authorizer: GroupAuthorizer,
    interest_tracker: InterestTracker,
    bot_user_id: str,
) -> None:
    """Register Telegram update handlers.

    Args:
        application: Application instance.
        use_case: Use case for inbound messages.
        event_adapter: Adapter for converting updates to entities.
        authorizer: Group authorization service.
        interest_tracker: Tracker cleared when the bot leaves a chat.
        bot_user_id: The bot's user ID.
    """

    async def handle_new_chat_members(
        update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Check authorization when the bot is added to a group."""
        message = update.effective_message
        if message is None or not message.new_chat_members:
            return
        if not any(str(member.id) == bot_user_id for member in message.new_chat_members):
            return

        chat = event_adapter.to_chat(message.chat)
        logger.info("Added to chat %s", chat.id)
        try:
            await authorizer.is_authorized(chat, None)
        except Exception:
            logger.exception("Error checking authorization for chat %s", chat.id)

    async def handle_my_chat_member(
        update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Forget chat state when the bot is removed from a chat."""
        member_update = update.my_chat_member
        if member_update is None:
            return
        if member_update.new_chat_member.status in _REMOVED_STATUSES:
            chat_id = str(member_update.chat.id)
            interest_tracker.clear(chat_id)
            logger.info("Removed from chat %s", chat_id)

    async def handle_message(
        update: Update, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Handle message updates.

        Authorizes the chat, converts the update and runs the use case.
        On failure the sender gets a short error notice, unless the bot
        can no longer post to the chat.
        """
        message = update.effective_message
        if message is None or message.from_user is None:
            return

        logger.debug(
            "Processing message: id=%s, chat=%s",
            message.message_id,
            message.chat_id,
        )

        try:
            chat = event_adapter.to_chat(message.chat)
            if not await authorizer.is_authorized(chat, str(message.from_user.id)):
                return
            await use_case.execute(event_adapter.to_message(message))
        except Exception as e:
            logger.exception("Error handling message %s", message.message_id)
            if _is_chat_not_accessible(e):
                interest_tracker.clear(str(message.chat_id))
                return
            try:
                await message.reply_text(ERROR_NOTICE)
            except Exception:
                logger.exception("Error sending error notice")

    async def handle_error(
        update: object, context: ContextTypes.DEFAULT_TYPE
    ) -> None:
        """Log errors raised outside the message handler."""
        logger.error("Error processing update: %s", update, exc_info=context.error)

    application.add_handler(
        MessageHandler(filters.StatusUpdate.NEW_CHAT_MEMBERS, handle_new_chat_members)
    )
    application.add_handler(
        ChatMemberHandler(handle_my_chat_member, ChatMemberHandler.MY_CHAT_MEMBER)
    )
    application.add_handler(
        MessageHandler(
            (filters.TEXT | filters.CAPTION | filters.PHOTO | filters.Document.IMAGE)
            & ~filters.StatusUpdate.ALL,
            handle_message,
        )
    )
    application.add_error_handler(handle_error)
