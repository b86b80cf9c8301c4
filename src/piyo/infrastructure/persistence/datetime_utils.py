"""Datetime utilities for persistence layer."""

from datetime import datetime, timezone


def normalize_to_utc(dt: datetime) -> datetime:
    """SQLite から読み出した日時を UTC の aware datetime にそろえる

    SQLite はタイムゾーン情報を保持しないため、naive な値は UTC とみなす。

    Args:
        dt: 対象の datetime

    Returns:
        UTC の aware datetime
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
