"""Response decision."""

from enum import Enum


class Decision(Enum):
    """応答判定の結果

    STOP はテンプレート上の語彙としてのみ存在し、
    判定処理は RESPOND か IGNORE しか返さない。
    """

    RESPOND = "RESPOND"
    IGNORE = "IGNORE"
    STOP = "STOP"
