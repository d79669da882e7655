"""
游标滚动模块

open -> advance -> close 协议、自动排空与偏移分页
"""

from floe.modules.scroll.engine import DEFAULT_PAGE_SIZE, DEFAULT_SCROLL_TIME, ScrollEngine
from floe.modules.scroll.models import (
    CursorHandle,
    PageStatus,
    ResultSet,
    ScrollPage,
    ScrollState,
)

__all__ = [
    "ScrollEngine",
    "DEFAULT_SCROLL_TIME",
    "DEFAULT_PAGE_SIZE",
    "CursorHandle",
    "PageStatus",
    "ResultSet",
    "ScrollPage",
    "ScrollState",
]
