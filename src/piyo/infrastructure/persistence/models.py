"""SQLModel table definitions."""

from datetime import datetime, timezone

from sqlmodel import Field, SQLModel


class MemoryModel(SQLModel, table=True):
    """記憶テーブル"""

    __tablename__ = "memories"

    id: int | None = Field(default=None, primary_key=True)
    memory_id: str = Field(unique=True, index=True)
    room_id: str = Field(index=True)
    user_id: str = Field(index=True)
    user_name: str = ""
    agent_id: str
    text: str
    source: str = "telegram"
    in_reply_to: str | None = None
    action: str | None = None
    created_at: datetime = Field(index=True)
    stored_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
