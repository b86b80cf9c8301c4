"""Per-chat interest tracking."""

import logging
import time
from collections import deque
from collections.abc import Callable

from piyo.domain.entities.chat_state import ChatState, TrackedMessage

logger = logging.getLogger(__name__)

DEFAULT_MAX_MESSAGES = 50
DEFAULT_HANDLER_TIMEOUT_SECONDS = 300.0


class InterestTracker:
    """Maintains rolling per-chat state.

    The tracker is the only owner of the chat-id-to-state mapping. It
    performs no response decisions itself; the decision engine reads
    from it and the dispatch pipeline updates the current handler.

    All mutations are synchronous, so a caller that tracks a message
    before its first ``await`` preserves arrival order per chat.
    """

    def __init__(
        self,
        max_messages: int = DEFAULT_MAX_MESSAGES,
        handler_timeout_seconds: float = DEFAULT_HANDLER_TIMEOUT_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the tracker.

        Args:
            max_messages: Maximum tracked messages per chat. Older
                messages are evicted first.
            handler_timeout_seconds: How long a handler stays active
                after it was last set.
            clock: Returns the current time in epoch seconds.
        """
        if max_messages <= 0:
            raise ValueError("max_messages must be positive")
        self._max_messages = max_messages
        self._handler_timeout_seconds = handler_timeout_seconds
        self._clock = clock
        self._chats: dict[str, ChatState] = {}

    def track(self, chat_id: str, record: TrackedMessage) -> ChatState:
        """Record a message for a chat, creating its state on first use.

        Args:
            chat_id: Chat ID.
            record: Message record to append.

        Returns:
            The chat's state after the update.
        """
        state = self._chats.get(chat_id)
        if state is None:
            state = ChatState(
                chat_id=chat_id,
                messages=deque(maxlen=self._max_messages),
            )
            self._chats[chat_id] = state
            logger.debug("Started tracking chat %s", chat_id)

        state.messages.append(record)
        state.last_message_sent = self._clock()
        return state

    def get(self, chat_id: str) -> ChatState | None:
        """Get the state for a chat, if any."""
        return self._chats.get(chat_id)

    def set_handler(self, chat_id: str, handler: str | None) -> None:
        """Set or clear the active handler for a tracked chat.

        Args:
            chat_id: Chat ID.
            handler: Handler tag, or None to clear.
        """
        state = self._chats.get(chat_id)
        if state is None:
            logger.debug("Ignoring handler update for untracked chat %s", chat_id)
            return
        now = self._clock()
        state.current_handler = handler
        state.handler_updated_at = now
        state.last_message_sent = now

    def active_handler(self, chat_id: str) -> str | None:
        """Get the chat's handler if it has not timed out.

        A timed-out handler is cleared.

        Args:
            chat_id: Chat ID.

        Returns:
            The handler tag, or None.
        """
        state = self._chats.get(chat_id)
        if state is None or state.current_handler is None:
            return None

        if self._clock() - state.handler_updated_at > self._handler_timeout_seconds:
            logger.debug(
                "Handler %s for chat %s timed out", state.current_handler, chat_id
            )
            state.current_handler = None
            return None
        return state.current_handler

    def clear(self, chat_id: str) -> None:
        """Forget a chat entirely."""
        if self._chats.pop(chat_id, None) is not None:
            logger.debug("Stopped tracking chat %s", chat_id)

    def __contains__(self, chat_id: object) -> bool:
        return chat_id in self._chats

    def __len__(self) -> int:
        return len(self._chats)
