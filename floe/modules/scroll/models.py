"""
滚动查询数据模型
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, List, Optional


class ScrollState(str, Enum):
    """
    游标状态

    IDLE -> OPENED -> (ADVANCING <-> OPENED) -> CLOSED，CLOSED 为终态
    """

    IDLE = "idle"
    OPENED = "opened"
    ADVANCING = "advancing"
    CLOSED = "closed"


class PageStatus(str, Enum):
    """
    单页结果状态

    - CONTINUE: 非空页，可以继续滚动
    - END: 空页，自然结束
    - ERROR: 后端返回无效响应，停止滚动
    """

    CONTINUE = "continue"
    END = "end"
    ERROR = "error"


@dataclass
class CursorHandle:
    """
    游标句柄

    cursor_id 随每次滚动更新为后端返回的最新值；同一句柄不可并发滚动。
    """

    cursor_id: str
    scroll_time: str
    index: str
    state: ScrollState = ScrollState.IDLE

    @property
    def closed(self) -> bool:
        return self.state == ScrollState.CLOSED


@dataclass(frozen=True)
class ScrollPage:
    """一页滚动结果"""

    documents: List[Any]
    status: PageStatus
    handle: Optional[CursorHandle] = None
    error: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.status == PageStatus.CONTINUE


@dataclass(frozen=True)
class ResultSet:
    """
    查询结果集

    error 不为空表示后端报错（documents 为报错前已获取的文档）；
    空结果不是错误。
    """

    documents: List[Any] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def __iter__(self) -> Iterator[Any]:
        return iter(self.documents)

    def __len__(self) -> int:
        return len(self.documents)

    def __getitem__(self, item):
        return self.documents[item]
