"""
时间处理工具模块
"""

from datetime import datetime, timezone


def get_utc_now() -> datetime:
    """
    获取当前UTC时间

    Returns:
        UTC datetime对象
    """
    return datetime.now(timezone.utc)


def format_datetime(dt: datetime, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    """
    格式化datetime对象

    Args:
        dt: datetime对象
        fmt: 格式字符串

    Returns:
        格式化后的字符串
    """
    return dt.strftime(fmt)


def format_index_date(dt: datetime) -> str:
    """按滚动索引格式（YYYY.MM.DD，UTC）格式化日期"""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return format_datetime(dt, "%Y.%m.%d")
