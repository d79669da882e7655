"""Floe - 检索引擎客户端辅助层

缓冲批量写入、游标滚动读取与查询组合
"""

__version__ = "0.1.0"

from floe.engine import Floe
from floe.exceptions import (
    BulkWriteError,
    CacheError,
    ConfigError,
    FloeError,
    ReservedIndexError,
    ScrollError,
    ScrollStateError,
    StorageError,
)
from floe.models import BackendError, Found, NotFound
from floe.modules.query import QueryDescription, TimeUnit, TimeWindow, compose
from floe.modules.scroll import CursorHandle, PageStatus, ResultSet, ScrollEngine, ScrollPage
from floe.modules.write import BulkOutcome, BulkWriter, BulkWriterConfig

__all__ = [
    # Version
    "__version__",
    # Engine
    "Floe",
    # Modules
    "compose",
    "QueryDescription",
    "TimeWindow",
    "TimeUnit",
    "BulkWriter",
    "BulkWriterConfig",
    "BulkOutcome",
    "ScrollEngine",
    "ScrollPage",
    "CursorHandle",
    "PageStatus",
    "ResultSet",
    # Outcomes
    "Found",
    "NotFound",
    "BackendError",
    # Exceptions
    "FloeError",
    "ConfigError",
    "StorageError",
    "BulkWriteError",
    "CacheError",
    "ScrollError",
    "ScrollStateError",
    "ReservedIndexError",
]
