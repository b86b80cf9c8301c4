"""Domain services."""

from piyo.domain.services.interest_tracker import InterestTracker
from piyo.domain.services.protocols import (
    GenerationService,
    ImageDescriptionService,
    MemoryStore,
    MessagingService,
    ResponseHooks,
    State,
    StateComposer,
)
from piyo.domain.services.response_decision import ResponseDecisionEngine
from piyo.domain.services.template import compose_context, compose_random_user
from piyo.domain.services.text import (
    escape_markdown,
    lexical_similarity,
    split_message,
    stable_id,
    utf16_length,
)

__all__ = [
    "GenerationService",
    "ImageDescriptionService",
    "InterestTracker",
    "MemoryStore",
    "MessagingService",
    "ResponseDecisionEngine",
    "ResponseHooks",
    "State",
    "StateComposer",
    "compose_context",
    "compose_random_user",
    "escape_markdown",
    "lexical_similarity",
    "split_message",
    "stable_id",
    "utf16_length",
]
