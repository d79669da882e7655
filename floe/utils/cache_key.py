"""
缓存键推导

由调用方法名和其有效参数确定性地生成缓存键。
注意：缺省参数（None）与空字符串贡献相同的内容，``field=None`` 与 ``field=""`` 会得到同一个键。
"""

from typing import Any, Optional, Sequence, Tuple

_SEPARATOR = "|"


def _part(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return str([tuple(item) if isinstance(item, list) else item for item in value])
    return str(value)


def derive_cache_key(
    caller: str,
    field: Optional[str] = None,
    value: Any = None,
    filters: Optional[Sequence[Tuple[str, Any]]] = None,
    sort: Optional[Tuple[str, str]] = None,
    hours: Optional[float] = None,
    days: Optional[float] = None,
    scroll_time: Optional[str] = None,
    index: Optional[str] = None,
    timestamp_field: Optional[str] = None,
    page: Optional[int] = None,
    page_size: Optional[int] = None,
) -> str:
    """
    生成缓存键

    Args:
        caller: 调用方法名（如 "list"、"search"）
        field: 检索字段
        value: 检索值
        filters: 过滤条件 [(field, value), ...]
        sort: 排序 (field, direction)
        hours: 最近N小时
        days: 最近N天
        scroll_time: 游标存活时间
        index: 索引
        timestamp_field: 时间戳字段
        page: 页码
        page_size: 每页数量

    Returns:
        缓存键字符串，相同参数总是得到相同的键
    """
    parts = [
        caller,
        _part(field),
        _part(value),
        _part(filters),
        _part(sort),
        _part(hours),
        _part(days),
        _part(scroll_time),
        _part(index),
        _part(timestamp_field),
        _part(page),
        _part(page_size),
    ]
    return _SEPARATOR.join(parts)
