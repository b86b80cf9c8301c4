"""SQLite implementation of MemoryStore."""

import logging
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from piyo.domain.entities import Memory, MemoryContent
from piyo.infrastructure.persistence.datetime_utils import normalize_to_utc
from piyo.infrastructure.persistence.exceptions import DatabaseError
from piyo.infrastructure.persistence.models import MemoryModel

logger = logging.getLogger(__name__)


class SQLiteMemoryStore:
    """SQLite による記憶ストア実装"""

    def __init__(
        self,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]],
    ) -> None:
        """初期化

        Args:
            session_factory: 非同期セッション生成関数
        """
        self._session_factory = session_factory

    async def create_memory(self, memory: Memory) -> None:
        """記憶を保存する

        同じ ID の記憶が既に存在する場合は何もしない。

        Args:
            memory: 保存する記憶

        Raises:
            DatabaseError: データベース操作に失敗した
        """
        try:
            async with self._session_factory() as session:
                result = await session.exec(
                    select(MemoryModel).where(MemoryModel.memory_id == memory.id)
                )
                if result.first() is not None:
                    logger.debug("Memory %s already exists, skipping", memory.id)
                    return

                session.add(self._to_model(memory))
                await session.commit()
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create memory {memory.id}: {e}") from e

    async def get_memory_by_id(self, memory_id: str) -> Memory | None:
        """ID で記憶を検索する

        Args:
            memory_id: 記憶ID

        Returns:
            見つかった記憶、または None
        """
        async with self._session_factory() as session:
            result = await session.exec(
                select(MemoryModel).where(MemoryModel.memory_id == memory_id)
            )
            model = result.first()
            return self._to_entity(model) if model else None

    async def get_memories(self, room_id: str, count: int = 20) -> list[Memory]:
        """ルームの最新の記憶を取得する

        Args:
            room_id: ルームID
            count: 取得する最大件数

        Returns:
            記憶のリスト（古い順）
        """
        async with self._session_factory() as session:
            statement = (
                select(MemoryModel)
                .where(MemoryModel.room_id == room_id)
                .order_by(
                    MemoryModel.created_at.desc(),  # type: ignore[attr-defined]
                    MemoryModel.id.desc(),  # type: ignore[union-attr]
                )
                .limit(count)
            )
            result = await session.exec(statement)
            models = result.all()
            return [self._to_entity(m) for m in reversed(models)]

    def _to_model(self, memory: Memory) -> MemoryModel:
        """Memory エンティティを MemoryModel に変換"""
        return MemoryModel(
            memory_id=memory.id,
            room_id=memory.room_id,
            user_id=memory.user_id,
            user_name=memory.user_name,
            agent_id=memory.agent_id,
            text=memory.content.text,
            source=memory.content.source,
            in_reply_to=memory.content.in_reply_to,
            action=memory.content.action,
            created_at=normalize_to_utc(memory.created_at),
        )

    def _to_entity(self, model: MemoryModel) -> Memory:
        """MemoryModel を Memory エンティティに変換"""
        return Memory(
            id=model.memory_id,
            user_id=model.user_id,
            user_name=model.user_name,
            agent_id=model.agent_id,
            room_id=model.room_id,
            content=MemoryContent(
                text=model.text,
                source=model.source,
                in_reply_to=model.in_reply_to,
                action=model.action,
            ),
            created_at=normalize_to_utc(model.created_at),
        )
