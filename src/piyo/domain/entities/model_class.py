"""Generation model classes."""

from enum import Enum


class ModelClass(Enum):
    """生成に使うモデルの大きさ"""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
