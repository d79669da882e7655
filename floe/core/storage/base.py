"""
检索后端能力接口

Floe 只消费这些能力，不关心具体的传输协议
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class BulkResponse:
    """批量写入响应"""

    errors: bool = False
    item_errors: List[Dict[str, Any]] = field(default_factory=list)
    success_count: int = 0


@dataclass
class SearchResponse:
    """
    检索/滚动响应

    valid=False 表示后端返回了错误（error_reason 为原因），
    cursor_id 为空表示没有打开游标（索引不存在或为空）。
    """

    documents: List[Dict[str, Any]] = field(default_factory=list)
    cursor_id: Optional[str] = None
    valid: bool = True
    error_reason: Optional[str] = None
    total: Optional[int] = None


class SearchBackend(ABC):
    """检索后端基类"""

    @abstractmethod
    async def bulk_write(
        self, index: str, actions: List[Dict[str, Any]]
    ) -> BulkResponse:
        """
        批量写入

        Args:
            index: 目标索引
            actions: 写入操作列表，每项包含 _source，可选 _id

        Returns:
            批量写入响应
        """

    @abstractmethod
    async def search(
        self,
        index: str,
        query: Dict[str, Any],
        from_: int = 0,
        size: int = 10,
        sort: Optional[List[Dict[str, Any]]] = None,
        scroll: Optional[str] = None,
    ) -> SearchResponse:
        """
        执行检索，指定 scroll 时打开游标

        Args:
            index: 索引或索引模式
            query: 查询DSL
            from_: 起始位置
            size: 返回数量
            sort: 排序
            scroll: 游标存活时间（如 "60s"）
        """

    @abstractmethod
    async def scroll_advance(self, cursor_id: str, ttl: str) -> SearchResponse:
        """使用游标获取下一页"""

    @abstractmethod
    async def scroll_close(self, cursor_id: str) -> None:
        """释放游标"""

    @abstractmethod
    async def get_by_id(self, index: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """按ID获取文档，不存在返回None"""

    @abstractmethod
    async def list_indices(self) -> List[str]:
        """列出所有索引名称"""

    @abstractmethod
    async def delete_index(self, name: str) -> bool:
        """删除索引，成功返回True"""

    async def close(self) -> None:
        """释放后端连接（默认无操作）"""
        return None
