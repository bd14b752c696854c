"""
自定义列类型
"""
from datetime import date, datetime, time, timezone
from typing import Optional, Union

from sqlalchemy import DateTime, TypeDecorator


def to_utc(value: Union[datetime, date, None]) -> Optional[datetime]:
    """
    统一转换为带时区的 UTC 时间

    - 无时区的 datetime 视为 UTC
    - 纯日期视为当天 00:00 UTC
    """
    if value is None:
        return None
    if not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """当前 UTC 时间（带时区）"""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    带时区的时间戳列

    写入前统一转换为 UTC，读取后附带 UTC 时区。
    SQLite 不保存时区信息，统一按 UTC 存储后比较运算才有意义。
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        value = to_utc(value)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return to_utc(value)
