"""
Floe - 检索引擎客户端辅助层

统一入口：缓冲批量写入、游标滚动读取、查询组合、按ID查找、索引管理与结果缓存
"""

import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Sequence, Tuple, Type

from pydantic import BaseModel

from floe.core.config import get_settings
from floe.core.storage.base import SearchBackend
from floe.core.storage.cache import ResultCache
from floe.exceptions import CacheError, ReservedIndexError
from floe.models.outcome import BackendError, FindOutcome, Found, NotFound
from floe.modules.query import QueryDescription, TimeUnit, TimeWindow, compose
from floe.modules.scroll import CursorHandle, ResultSet, ScrollEngine, ScrollPage
from floe.modules.write import BulkOutcome, BulkWriter, BulkWriterConfig
from floe.utils import derive_cache_key, get_logger, is_reserved_index, search_pattern

Filters = Optional[Sequence[Tuple[str, Any]]]
Sort = Optional[Tuple[str, str]]


class Floe:
    """
    检索引擎客户端辅助层

    写入：
    - write(): 缓冲写入，失败时抛出异常
    - write_best_effort(): 缓冲写入，失败时只记录日志
    - flush_remaining(): 提交剩余文档

    读取：
    - find(): 按ID查找，返回 Found / NotFound / BackendError
    - list() / search(): 游标滚动读取全部结果
    - page(): 偏移分页
    - begin_scroll() / continue_scroll() / end_scroll(): 手动控制游标
    """

    def __init__(
        self,
        backend: SearchBackend,
        default_index: Optional[str] = None,
        bulk_size: int = 5,
        rolling_date: bool = False,
        rolling_date_position: str = "suffix",
        id_field: str = "id",
        scroll_time: str = "60s",
        page_size: int = 1000,
        timestamp_field: str = "timeStamp",
        reserved_index_prefix: str = ".",
        field_map: Optional[Mapping[str, str]] = None,
        document_model: Optional[Type[BaseModel]] = None,
        cache: Optional[ResultCache] = None,
        serialize_lock: bool = True,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        初始化Floe

        Args:
            backend: 检索后端
            default_index: 默认读写索引
            bulk_size: 累计多少文档触发一次批量写入（0表示每次写入立即提交）
            rolling_date: 是否按日期（UTC）滚动写入索引
            rolling_date_position: 滚动日期位置（suffix/prefix）
            id_field: 文档标识字段
            scroll_time: 默认游标存活时间
            page_size: 滚动读取时每页文档数
            timestamp_field: 时间窗口使用的时间戳字段
            reserved_index_prefix: 系统保留索引前缀，删除时跳过
            field_map: 字段名映射（调用方字段名 -> 后端字段名）
            document_model: 读取结果转换的 pydantic 模型（可选，默认返回字典）
            cache: 结果缓存（可选）
            serialize_lock: 是否串行化写入
            logger: 日志器（可选）
        """
        self.backend = backend
        self.default_index = default_index
        self.rolling_date = rolling_date
        self.rolling_date_position = rolling_date_position
        self.scroll_time = scroll_time
        self.page_size = page_size
        self.timestamp_field = timestamp_field
        self.reserved_index_prefix = reserved_index_prefix
        self.field_map = dict(field_map or {})
        self.document_model = document_model
        self.cache = cache
        self.logger = logger or get_logger("engine.floe")

        self.writer = BulkWriter(
            backend,
            BulkWriterConfig(
                default_index=default_index,
                bulk_size=bulk_size,
                rolling_date=rolling_date,
                rolling_date_position=rolling_date_position,
                id_field=id_field,
                serialize_lock=serialize_lock,
            ),
            logger=self.logger,
        )
        self.scroller = ScrollEngine(
            backend, scroll_time=scroll_time, page_size=page_size, logger=self.logger
        )

    @classmethod
    def from_settings(
        cls,
        backend: Optional[SearchBackend] = None,
        cache: Optional[ResultCache] = None,
        **kwargs: Any,
    ) -> "Floe":
        """
        按应用配置创建Floe

        Args:
            backend: 检索后端（可选，默认按配置创建 ElasticsearchBackend）
            cache: 结果缓存（可选）
            **kwargs: 覆盖配置的构造参数
        """
        settings = get_settings()
        if backend is None:
            from floe.core.storage.elasticsearch import ElasticsearchBackend

            backend = ElasticsearchBackend()

        params = {
            "default_index": settings.default_index,
            "bulk_size": settings.bulk_size,
            "rolling_date": settings.rolling_date,
            "rolling_date_position": settings.rolling_date_position,
            "scroll_time": settings.scroll_time,
            "page_size": settings.scroll_page_size,
            "timestamp_field": settings.timestamp_field,
            "reserved_index_prefix": settings.reserved_index_prefix,
        }
        params.update(kwargs)
        return cls(backend, cache=cache, **params)

    # ======================
    # 写入
    # ======================

    async def write(
        self,
        document: Any,
        allow_duplicates: bool = False,
        index: Optional[str] = None,
    ) -> BulkOutcome:
        """
        缓冲写入文档，达到阈值时批量提交

        Raises:
            ConfigError: 无法解析目标索引
            BulkWriteError: 批量写入存在逐条错误（批次保留，下次重试）
            Exception: 后端调用异常原样抛出
        """
        return await self.writer.add(document, allow_duplicates=allow_duplicates, index=index)

    async def write_best_effort(
        self,
        document: Any,
        index: Optional[str] = None,
    ) -> Optional[BulkOutcome]:
        """
        缓冲写入文档（尽力而为）

        任何失败只记录日志，不向调用方抛出；失败时返回None。
        """
        try:
            return await self.writer.add(document, index=index)
        except Exception as e:
            self.logger.error(f"写入失败（已忽略）: {e}", exc_info=True)
            return None

    async def flush_remaining(
        self,
        allow_duplicates: bool = False,
        index: Optional[str] = None,
    ) -> BulkOutcome:
        """提交所有剩余文档（即使未达到阈值）"""
        return await self.writer.flush_remaining(allow_duplicates=allow_duplicates, index=index)

    # ======================
    # 读取
    # ======================

    def _index_pattern(self, index: Optional[str]) -> str:
        return search_pattern(
            index,
            self.default_index,
            rolling_date=self.rolling_date,
            position=self.rolling_date_position,
        )

    def _compose(
        self,
        field: Optional[str],
        value: Any,
        filters: Filters,
        sort: Sort,
        time_window: Optional[TimeWindow],
        timestamp_field: Optional[str],
    ) -> QueryDescription:
        return compose(
            match_field=field,
            match_value=value,
            filters=filters,
            time_window=time_window,
            sort=sort,
            timestamp_field=timestamp_field or self.timestamp_field,
            field_map=self.field_map,
        )

    @property
    def type_tag(self) -> str:
        """缓存数据类型标签"""
        if self.document_model is None:
            return "dict"
        return f"{self.document_model.__module__}.{self.document_model.__qualname__}"

    def _materialize(self, result: ResultSet) -> ResultSet:
        if self.document_model is None:
            return result
        return ResultSet(
            documents=[self.document_model.model_validate(doc) for doc in result.documents],
            error=result.error,
        )

    async def _with_cache(
        self,
        use_cache: bool,
        key: str,
        loader: Callable[[], Awaitable[ResultSet]],
    ) -> ResultSet:
        if not use_cache or self.cache is None:
            return self._materialize(await loader())

        # 缓存不可用时视为未命中，直接查询后端
        try:
            cached = await self.cache.get(key, self.type_tag)
        except CacheError as e:
            self.logger.warning(f"读取缓存失败，改为查询后端: {key}, {e}")
            cached = None

        if cached is not None:
            self.logger.debug(f"命中缓存: {key}")
            return self._materialize(ResultSet(documents=list(cached)))

        result = await loader()
        # 只缓存完整结果
        if result.ok:
            try:
                await self.cache.set(result.documents, self.type_tag, key=key)
            except CacheError as e:
                self.logger.warning(f"写入缓存失败，已跳过: {key}, {e}")
        return self._materialize(result)

    @staticmethod
    def _window_parts(time_window: Optional[TimeWindow]) -> Tuple[Optional[float], Optional[float]]:
        if time_window is None:
            return None, None
        if TimeUnit(time_window.unit) == TimeUnit.HOURS:
            return time_window.amount, None
        return None, time_window.amount

    async def find(self, doc_id: str, index: Optional[str] = None) -> FindOutcome:
        """
        按ID查找文档

        Args:
            doc_id: 文档ID
            index: 索引（可选，默认索引；包含所有滚动索引）

        Returns:
            Found(document) / NotFound(doc_id) / BackendError(reason)
        """
        pattern = self._index_pattern(index)
        try:
            source = await self.backend.get_by_id(pattern, doc_id)
        except Exception as e:
            self.logger.error(f"查找文档失败: id={doc_id}, {e}", exc_info=True)
            return BackendError(reason=str(e))

        if source is None:
            self.logger.info(f"未找到文档: id={doc_id}")
            return NotFound(doc_id=doc_id)

        self.logger.info(f"找到文档: id={doc_id}")
        if self.document_model is not None:
            return Found(self.document_model.model_validate(source))
        return Found(source)

    async def list(
        self,
        filters: Filters = None,
        sort: Sort = None,
        time_window: Optional[TimeWindow] = None,
        list_today: bool = False,
        scroll_time: Optional[str] = None,
        index: Optional[str] = None,
        timestamp_field: Optional[str] = None,
        use_cache: bool = False,
    ) -> ResultSet:
        """
        滚动读取索引中的全部文档

        Args:
            filters: 精确过滤条件
            sort: 排序 (field, "asc" | "des")
            time_window: 时间窗口
            list_today: 只读取最近1天（未指定 time_window 时生效）
            scroll_time: 游标存活时间
            index: 索引（可选）
            timestamp_field: 时间戳字段
            use_cache: 是否使用结果缓存
        """
        if time_window is None and list_today:
            time_window = TimeWindow.days(1)
        return await self._drain(
            "list", None, None, filters, sort, time_window, scroll_time, index, timestamp_field, use_cache
        )

    async def search(
        self,
        field: str,
        value: Any,
        filters: Filters = None,
        sort: Sort = None,
        time_window: Optional[TimeWindow] = None,
        search_today: bool = False,
        scroll_time: Optional[str] = None,
        index: Optional[str] = None,
        timestamp_field: Optional[str] = None,
        use_cache: bool = False,
    ) -> ResultSet:
        """
        按字段匹配检索，滚动读取全部结果

        Args:
            field: 检索字段（如 "customerId" 或 "animal.name"）
            value: 检索值
            其他参数同 list()
        """
        if time_window is None and search_today:
            time_window = TimeWindow.days(1)
        return await self._drain(
            "search", field, value, filters, sort, time_window, scroll_time, index, timestamp_field, use_cache
        )

    async def _drain(
        self,
        caller: str,
        field: Optional[str],
        value: Any,
        filters: Filters,
        sort: Sort,
        time_window: Optional[TimeWindow],
        scroll_time: Optional[str],
        index: Optional[str],
        timestamp_field: Optional[str],
        use_cache: bool,
    ) -> ResultSet:
        pattern = self._index_pattern(index)
        query = self._compose(field, value, filters, sort, time_window, timestamp_field)
        hours, days = self._window_parts(time_window)
        key = derive_cache_key(
            caller,
            field=field,
            value=value,
            filters=filters,
            sort=sort,
            hours=hours,
            days=days,
            scroll_time=scroll_time,
            index=index,
            timestamp_field=timestamp_field,
        )

        async def loader() -> ResultSet:
            return await self.scroller.drain(query, pattern, scroll_time=scroll_time)

        return await self._with_cache(use_cache, key, loader)

    async def page(
        self,
        page_number: int = 1,
        page_size: int = 10,
        field: Optional[str] = None,
        value: Any = None,
        filters: Filters = None,
        sort: Sort = None,
        time_window: Optional[TimeWindow] = None,
        index: Optional[str] = None,
        timestamp_field: Optional[str] = None,
        use_cache: bool = False,
    ) -> ResultSet:
        """
        偏移分页读取（适用于界面分页等小结果集）

        页码和每页数量小于1时按1处理。
        """
        page_number = max(page_number, 1)
        page_size = max(page_size, 1)

        pattern = self._index_pattern(index)
        query = self._compose(field, value, filters, sort, time_window, timestamp_field)
        hours, days = self._window_parts(time_window)
        key = derive_cache_key(
            "page",
            field=field,
            value=value,
            filters=filters,
            sort=sort,
            hours=hours,
            days=days,
            index=index,
            timestamp_field=timestamp_field,
            page=page_number,
            page_size=page_size,
        )

        async def loader() -> ResultSet:
            return await self.scroller.page(query, pattern, page_number, page_size)

        return await self._with_cache(use_cache, key, loader)

    # ======================
    # 手动游标
    # ======================

    async def begin_scroll(
        self,
        field: Optional[str] = None,
        value: Any = None,
        filters: Filters = None,
        sort: Sort = None,
        time_window: Optional[TimeWindow] = None,
        scroll_time: Optional[str] = None,
        index: Optional[str] = None,
        timestamp_field: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> ScrollPage:
        """
        打开游标并返回第一页

        通过 page.handle 调用 continue_scroll()，结束时必须调用 end_scroll()。
        """
        query = self._compose(field, value, filters, sort, time_window, timestamp_field)
        return await self.scroller.open(
            query, self._index_pattern(index), page_size=page_size, scroll_time=scroll_time
        )

    async def continue_scroll(
        self, handle: CursorHandle, scroll_time: Optional[str] = None
    ) -> ScrollPage:
        """获取下一页"""
        return await self.scroller.advance(handle, scroll_time)

    async def end_scroll(self, handle: Optional[CursorHandle]) -> None:
        """释放游标（重复调用无副作用）"""
        await self.scroller.close(handle)

    # ======================
    # 索引管理
    # ======================

    async def delete_index(self, name: str) -> bool:
        """
        删除索引

        Raises:
            ReservedIndexError: 索引名以系统保留前缀开头
        """
        if not name:
            return False
        if is_reserved_index(name, self.reserved_index_prefix):
            raise ReservedIndexError(f"拒绝删除系统保留索引: {name}")

        self.logger.info(f"删除索引: {name}")
        return await self.backend.delete_index(name)

    async def delete_all_indices(self) -> bool:
        """
        删除所有非保留索引

        Returns:
            全部删除成功返回True
        """
        self.logger.info("删除所有索引")
        names = await self.backend.list_indices()

        results: List[bool] = []
        for name in names:
            if is_reserved_index(name, self.reserved_index_prefix):
                self.logger.debug(f"跳过系统保留索引: {name}")
                continue
            results.append(await self.delete_index(name))

        return all(results)

    # ======================
    # 缓存
    # ======================

    cache_key = staticmethod(derive_cache_key)

    async def flush_cached_data(self) -> int:
        """清除本实例写入的全部缓存，返回删除数量"""
        if self.cache is None:
            return 0
        return await self.cache.clear()

    async def close(self) -> None:
        """关闭后端连接"""
        await self.backend.close()
