"""
游标滚动引擎

open -> advance* -> close 协议的统一实现。
自动模式（drain）与手动模式（open/advance/close）共用同一套分页逻辑。
"""

import logging
from typing import AsyncIterator, Optional

from floe.core.storage.base import SearchBackend
from floe.exceptions import ScrollStateError
from floe.modules.query.models import QueryDescription
from floe.modules.scroll.models import (
    CursorHandle,
    PageStatus,
    ResultSet,
    ScrollPage,
    ScrollState,
)
from floe.utils import get_logger

DEFAULT_SCROLL_TIME = "60s"
DEFAULT_PAGE_SIZE = 1000


class ScrollEngine:
    """
    游标滚动引擎

    使用方式：
    1. drain(): 自动滚动到结束，拼接所有页的文档，结束时关闭游标
    2. open()/advance()/close(): 手动控制游标
    3. page(): 偏移分页（from/size），适用于小结果集
    """

    def __init__(
        self,
        backend: SearchBackend,
        scroll_time: str = DEFAULT_SCROLL_TIME,
        page_size: int = DEFAULT_PAGE_SIZE,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        初始化滚动引擎

        Args:
            backend: 检索后端
            scroll_time: 默认游标存活时间
            page_size: 默认每页文档数
            logger: 日志器（可选）
        """
        self.backend = backend
        self.scroll_time = scroll_time
        self.page_size = page_size
        self.logger = logger or get_logger("scroll.engine")

    async def open(
        self,
        query: QueryDescription,
        index: str,
        page_size: Optional[int] = None,
        scroll_time: Optional[str] = None,
    ) -> ScrollPage:
        """
        执行查询并打开游标

        Args:
            query: 查询描述
            index: 索引或索引模式
            page_size: 每页文档数
            scroll_time: 游标存活时间

        Returns:
            第一页结果；后端未返回游标时为空结果（视为索引不存在或为空，不是错误）
        """
        ttl = scroll_time or self.scroll_time
        size = page_size or self.page_size

        response = await self.backend.search(
            index,
            query.to_query(),
            from_=0,
            size=size,
            sort=query.to_sort(),
            scroll=ttl,
        )

        handle = None
        if response.cursor_id:
            handle = CursorHandle(cursor_id=response.cursor_id, scroll_time=ttl, index=index)
            handle.state = ScrollState.OPENED

        if not response.valid:
            reason = response.error_reason or "unknown error"
            self.logger.error(f"打开游标失败: index={index}, {reason}")
            await self._release_broken(handle)
            return ScrollPage(documents=[], status=PageStatus.ERROR, handle=handle, error=reason)

        if handle is None:
            self.logger.info(f"未返回游标，视为索引不存在或为空: {index}")
            return ScrollPage(documents=[], status=PageStatus.END)

        status = PageStatus.CONTINUE if response.documents else PageStatus.END
        return ScrollPage(documents=list(response.documents), status=status, handle=handle)

    async def advance(
        self,
        handle: CursorHandle,
        scroll_time: Optional[str] = None,
    ) -> ScrollPage:
        """
        获取下一页

        Returns:
            CONTINUE（非空页）、END（空页，自然结束）或 ERROR（游标失效，不重试）

        Raises:
            ScrollStateError: 游标未打开或已关闭
        """
        if handle.state != ScrollState.OPENED:
            raise ScrollStateError(f"游标状态为 {handle.state.value}，无法继续滚动")

        ttl = scroll_time or handle.scroll_time
        handle.state = ScrollState.ADVANCING
        try:
            response = await self.backend.scroll_advance(handle.cursor_id, ttl)
        finally:
            if handle.state == ScrollState.ADVANCING:
                handle.state = ScrollState.OPENED

        if response.cursor_id:
            handle.cursor_id = response.cursor_id

        if not response.valid:
            reason = response.error_reason or "unknown error"
            self.logger.error(f"滚动查询失败: index={handle.index}, {reason}")
            return ScrollPage(documents=[], status=PageStatus.ERROR, handle=handle, error=reason)

        if not response.documents:
            return ScrollPage(documents=[], status=PageStatus.END, handle=handle)

        return ScrollPage(
            documents=list(response.documents), status=PageStatus.CONTINUE, handle=handle
        )

    async def close(self, handle: Optional[CursorHandle]) -> None:
        """
        释放游标

        重复关闭是空操作，不会再次调用后端。
        """
        if handle is None:
            return
        if handle.state == ScrollState.CLOSED:
            self.logger.debug("游标已关闭，忽略重复关闭")
            return

        try:
            await self.backend.scroll_close(handle.cursor_id)
        finally:
            handle.state = ScrollState.CLOSED

    async def _release_broken(self, handle: Optional[CursorHandle]) -> None:
        # 游标已失效，释放失败只记录日志，不掩盖已报告的错误
        try:
            await self.close(handle)
        except Exception as e:
            index = handle.index if handle else None
            self.logger.warning(f"释放失效游标失败: index={index}, {e}")

    async def pages(
        self,
        query: QueryDescription,
        index: str,
        page_size: Optional[int] = None,
        scroll_time: Optional[str] = None,
    ) -> AsyncIterator[ScrollPage]:
        """
        逐页迭代，迭代结束（或异常）时关闭游标

        提前退出时请使用 ``contextlib.aclosing`` 包裹以确保游标被释放。
        """
        first = await self.open(query, index, page_size=page_size, scroll_time=scroll_time)
        handle = first.handle
        page = first
        try:
            yield first
            while page.has_more:
                page = await self.advance(handle, scroll_time)
                yield page
        finally:
            if page.status == PageStatus.ERROR:
                await self._release_broken(handle)
            else:
                await self.close(handle)

    async def drain(
        self,
        query: QueryDescription,
        index: str,
        page_size: Optional[int] = None,
        scroll_time: Optional[str] = None,
    ) -> ResultSet:
        """
        滚动到结束，按到达顺序拼接所有页的文档

        遇到游标失效时停止，返回已获取的文档并携带错误原因；无论如何游标只关闭一次。
        """
        documents = []
        error = None
        async for page in self.pages(query, index, page_size=page_size, scroll_time=scroll_time):
            documents.extend(page.documents)
            if page.status == PageStatus.ERROR:
                error = page.error

        if error:
            self.logger.error(
                f"滚动查询中断: index={index}, 已获取{len(documents)}条, {error}"
            )
        return ResultSet(documents=documents, error=error)

    async def page(
        self,
        query: QueryDescription,
        index: str,
        page_number: int = 1,
        page_size: int = 10,
    ) -> ResultSet:
        """
        偏移分页（from/size），每次调用一个请求

        页码和每页数量小于1时按1处理。不适合无界结果集。
        """
        page_number = max(page_number, 1)
        page_size = max(page_size, 1)

        response = await self.backend.search(
            index,
            query.to_query(),
            from_=(page_number - 1) * page_size,
            size=page_size,
            sort=query.to_sort(),
        )

        if not response.valid:
            reason = response.error_reason or "unknown error"
            self.logger.error(f"分页查询失败: index={index}, {reason}")
            return ResultSet(documents=[], error=reason)

        return ResultSet(documents=list(response.documents))
