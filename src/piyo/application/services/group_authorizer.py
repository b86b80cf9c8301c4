"""Group authorization service."""

import logging

from piyo.config import TelegramConfig
from piyo.domain.entities import Chat
from piyo.domain.services import InterestTracker, MessagingService

logger = logging.getLogger(__name__)

NOT_AUTHORIZED_NOTICE = "Not authorized. Leaving."


class GroupAuthorizer:
    """Restricts the bot to allowed group chats.

    When the restriction is enabled and the bot sees a group outside the
    allow list, it posts a farewell notice once, leaves the chat and
    forgets any tracked state for it.
    """

    def __init__(
        self,
        messaging_service: MessagingService,
        interest_tracker: InterestTracker,
        telegram_config: TelegramConfig,
        bot_user_id: str,
    ) -> None:
        """Initialize the authorizer.

        Args:
            messaging_service: Service for sending messages and leaving chats.
            interest_tracker: Tracker whose state is cleared on leave.
            telegram_config: Allowed group settings.
            bot_user_id: The bot's user ID.
        """
        self._messaging_service = messaging_service
        self._interest_tracker = interest_tracker
        self._only_allowed_groups = telegram_config.only_allowed_groups
        self._allowed_group_ids = frozenset(telegram_config.allowed_group_ids)
        self._bot_user_id = bot_user_id

    async def is_authorized(self, chat: Chat, sender_id: str | None) -> bool:
        """Check whether the bot may handle activity in a chat.

        Args:
            chat: The chat.
            sender_id: ID of the user who triggered the activity.

        Returns:
            True if the activity should be handled.
        """
        if sender_id is not None and sender_id == self._bot_user_id:
            return False

        if not self._only_allowed_groups or chat.is_private():
            return True

        if chat.id in self._allowed_group_ids:
            return True

        logger.info("Unauthorized group detected: %s", chat.id)
        try:
            await self._messaging_service.send_message(
                chat_id=chat.id, text=NOT_AUTHORIZED_NOTICE
            )
            await self._messaging_service.leave_chat(chat.id)
        except Exception:
            logger.exception("Error leaving unauthorized group %s", chat.id)

        self._interest_tracker.clear(chat.id)
        return False
