"""Persistence infrastructure."""

from piyo.infrastructure.persistence.database import DatabaseManager
from piyo.infrastructure.persistence.exceptions import (
    DatabaseError,
    PersistenceError,
)
from piyo.infrastructure.persistence.memory_store import SQLiteMemoryStore
from piyo.infrastructure.persistence.models import MemoryModel

__all__ = [
    "DatabaseError",
    "DatabaseManager",
    "MemoryModel",
    "PersistenceError",
    "SQLiteMemoryStore",
]
