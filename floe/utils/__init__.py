"""
工具函数模块
"""

from floe.utils.cache_key import derive_cache_key
from floe.utils.index import (
    is_reserved_index,
    resolve_index,
    search_pattern,
    write_target,
)
from floe.utils.logger import get_logger, get_null_logger, logger, setup_logging
from floe.utils.time import format_datetime, format_index_date, get_utc_now

__all__ = [
    # Logger
    "setup_logging",
    "get_logger",
    "get_null_logger",
    "logger",
    # Index
    "resolve_index",
    "write_target",
    "search_pattern",
    "is_reserved_index",
    # Cache key
    "derive_cache_key",
    # Time
    "get_utc_now",
    "format_datetime",
    "format_index_date",
]
