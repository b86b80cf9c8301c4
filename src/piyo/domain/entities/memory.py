"""Memory record entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

CONTINUE_ACTION = "CONTINUE"


@dataclass(frozen=True)
class MemoryContent:
    """記憶の内容

    Attributes:
        text: 本文
        source: 取得元プラットフォーム
        in_reply_to: 返信先の記憶ID
        action: 後続処理のアクション名（分割送信の途中は CONTINUE）
    """

    text: str
    source: str = "telegram"
    in_reply_to: str | None = None
    action: str | None = None


@dataclass(frozen=True)
class Memory:
    """エージェントランタイムに保存される記憶レコード

    Attributes:
        id: 記憶ID（安定ID）
        user_id: 発言者の安定ID
        user_name: 発言者の表示名
        agent_id: エージェントID
        room_id: チャットごとのルームID
        content: 記憶の内容
        created_at: 作成日時
    """

    id: str
    user_id: str
    user_name: str
    agent_id: str
    room_id: str
    content: MemoryContent
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
