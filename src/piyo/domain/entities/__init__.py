"""Domain entities."""

from piyo.domain.entities.attachment import (
    Attachment,
    AttachmentKind,
    ImageDescription,
)
from piyo.domain.entities.chat import Chat, ChatType
from piyo.domain.entities.chat_state import MESSAGE_HANDLER, ChatState, TrackedMessage
from piyo.domain.entities.decision import Decision
from piyo.domain.entities.memory import CONTINUE_ACTION, Memory, MemoryContent
from piyo.domain.entities.message import Message, SentMessage
from piyo.domain.entities.model_class import ModelClass
from piyo.domain.entities.user import User

__all__ = [
    "CONTINUE_ACTION",
    "MESSAGE_HANDLER",
    "Attachment",
    "AttachmentKind",
    "Chat",
    "ChatState",
    "ChatType",
    "Decision",
    "ImageDescription",
    "Memory",
    "MemoryContent",
    "Message",
    "ModelClass",
    "SentMessage",
    "TrackedMessage",
    "User",
]
