"""
索引名称工具

写入目标索引（支持按日期滚动）与检索索引模式的推导
"""

from datetime import datetime
from typing import Optional

from floe.exceptions import ConfigError
from floe.utils.time import format_index_date, get_utc_now

ROLLING_SUFFIX = "suffix"
ROLLING_PREFIX = "prefix"


def resolve_index(index: Optional[str], default_index: Optional[str]) -> str:
    """
    解析基础索引名

    Args:
        index: 调用方指定的索引
        default_index: 默认索引

    Returns:
        基础索引名

    Raises:
        ConfigError: 未指定索引且没有默认索引
    """
    base = index or default_index
    if not base:
        raise ConfigError("未指定索引，且没有可回退的默认索引")
    return base


def write_target(
    index: Optional[str],
    default_index: Optional[str],
    rolling_date: bool = False,
    position: str = ROLLING_SUFFIX,
    now: Optional[datetime] = None,
) -> str:
    """
    计算批量写入的目标索引

    每次写入时重新计算，跨越日期边界时自动切换到新索引。

    Args:
        index: 调用方指定的索引
        default_index: 默认索引
        rolling_date: 是否按日期滚动
        position: 日期位置，suffix -> ``orders-2024.03.05``，prefix -> ``2024.03.05-orders``
        now: 当前时间（默认UTC当前时间）

    Returns:
        目标索引名
    """
    base = resolve_index(index, default_index)
    if not rolling_date:
        return base

    date_part = format_index_date(now or get_utc_now())
    if position == ROLLING_PREFIX:
        return f"{date_part}-{base}"
    return f"{base}-{date_part}"


def search_pattern(
    index: Optional[str],
    default_index: Optional[str],
    rolling_date: bool = False,
    position: str = ROLLING_SUFFIX,
) -> str:
    """
    计算检索/滚动使用的索引模式

    后缀模式下使用 ``{base}*`` 覆盖所有滚动索引，前缀模式下使用 ``*{base}``。
    """
    base = resolve_index(index, default_index)
    if rolling_date and position == ROLLING_PREFIX:
        return f"*{base}"
    return f"{base}*"


def is_reserved_index(name: str, reserved_prefix: str = ".") -> bool:
    """是否为系统保留索引（如 .kibana、.security）"""
    return bool(reserved_prefix) and name.startswith(reserved_prefix)
