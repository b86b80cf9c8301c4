"""Application services."""

from piyo.application.services.group_authorizer import GroupAuthorizer
from piyo.application.services.state_composer import MemoryStateComposer

__all__ = ["GroupAuthorizer", "MemoryStateComposer"]
