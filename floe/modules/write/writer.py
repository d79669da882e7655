"""
缓冲批量写入器

文档先进入内存中的待写批次，累计达到阈值后作为一次 bulk 请求提交。
失败时批次不清空（至少一次、绝不静默丢弃），下次触发时重试。
"""

import asyncio
import contextlib
import dataclasses
import json
import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from pydantic import BaseModel

from floe.core.storage.base import SearchBackend
from floe.exceptions import BulkWriteError
from floe.modules.write.config import BulkWriterConfig
from floe.utils import get_logger, write_target


@dataclass(frozen=True)
class BulkOutcome:
    """一次 add / flush 的结果"""

    index: str
    flushed: bool = False
    submitted: int = 0
    pending: int = 0


def document_to_dict(document: Any) -> Dict[str, Any]:
    """
    将文档序列化为可写入的字典

    支持 dict、pydantic 模型、dataclass 以及普通对象
    """
    if isinstance(document, BaseModel):
        return document.model_dump(mode="json", by_alias=True)
    if dataclasses.is_dataclass(document) and not isinstance(document, type):
        return dataclasses.asdict(document)
    if isinstance(document, dict):
        return dict(document)
    if hasattr(document, "__dict__"):
        return dict(vars(document))
    raise TypeError(f"无法序列化的文档类型: {type(document).__name__}")


def document_id(document: Any, id_field: str = "id") -> Optional[str]:
    """读取文档标识，没有标识返回None"""
    if isinstance(document, dict):
        value = document.get(id_field)
    else:
        value = getattr(document, id_field, None)
    return None if value is None else str(value)


class BulkWriter:
    """
    缓冲批量写入器

    待写批次归属于单个写入器实例。默认用 asyncio.Lock 串行化 add 与 flush；
    关闭锁（serialize_lock=False）后，同一实例上的并发 add 可能越过阈值检查，
    此时需调用方保证单任务写入。
    """

    def __init__(
        self,
        backend: SearchBackend,
        config: Optional[BulkWriterConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        初始化写入器

        Args:
            backend: 检索后端
            config: 写入配置（默认从应用配置读取）
            logger: 日志器（可选）
        """
        self.backend = backend
        self.config = config or BulkWriterConfig.from_settings()
        self.logger = logger or get_logger("write.bulk")
        self._documents: List[Any] = []
        self._lock = asyncio.Lock() if self.config.serialize_lock else None

    @property
    def pending(self) -> Tuple[Any, ...]:
        """待写入的文档（只读快照）"""
        return tuple(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def target_index(self, index: Optional[str] = None) -> str:
        """计算本次写入的目标索引（每次重新计算，跨日自动切换）"""
        return write_target(
            index,
            self.config.default_index,
            rolling_date=self.config.rolling_date,
            position=self.config.rolling_date_position,
        )

    @contextlib.asynccontextmanager
    async def _guard(self) -> AsyncIterator[None]:
        if self._lock is None:
            yield
            return
        async with self._lock:
            yield

    async def add(
        self,
        document: Any,
        allow_duplicates: bool = False,
        index: Optional[str] = None,
    ) -> BulkOutcome:
        """
        添加文档，达到阈值时触发批量写入

        Args:
            document: 文档
            allow_duplicates: 是否允许同一标识的文档重复提交
            index: 目标索引（可选，默认使用默认索引）

        Returns:
            BulkOutcome

        Raises:
            ConfigError: 无法解析目标索引（文档不会入队）
            BulkWriteError: 批量写入存在逐条错误（批次保留）
            Exception: 后端调用异常原样抛出（批次保留）
        """
        target = self.target_index(index)

        async with self._guard():
            self._documents.append(document)

            if len(self._documents) >= self.config.bulk_size:
                return await self._flush(target, allow_duplicates)

            return BulkOutcome(index=target, pending=len(self._documents))

    async def flush_remaining(
        self,
        allow_duplicates: bool = False,
        index: Optional[str] = None,
    ) -> BulkOutcome:
        """
        无条件提交剩余文档（即使未达到阈值）

        批次为空时执行一次空写入，不会报错。
        """
        target = self.target_index(index)

        async with self._guard():
            return await self._flush(target, allow_duplicates)

    def clear(self) -> int:
        """丢弃所有待写文档，返回丢弃数量"""
        count = len(self._documents)
        self._documents.clear()
        return count

    def _deduplicate(self, documents: List[Any]) -> List[Any]:
        """按标识去重：保留最后一次添加的版本，位置沿用首次出现的位置"""
        by_id: Dict[str, int] = {}
        result: List[Any] = []
        for document in documents:
            doc_id = document_id(document, self.config.id_field)
            if doc_id is None:
                result.append(document)
            elif doc_id in by_id:
                result[by_id[doc_id]] = document
            else:
                by_id[doc_id] = len(result)
                result.append(document)
        return result

    def _to_action(self, document: Any) -> Dict[str, Any]:
        action: Dict[str, Any] = {"_source": document_to_dict(document)}
        doc_id = document_id(document, self.config.id_field)
        if doc_id is not None:
            action["_id"] = doc_id
        return action

    async def _flush(self, target: str, allow_duplicates: bool) -> BulkOutcome:
        count = len(self._documents)
        batch = self._documents[:count]
        if not allow_duplicates:
            batch = self._deduplicate(batch)
        actions = [self._to_action(document) for document in batch]

        try:
            response = await self.backend.bulk_write(target, actions)
        except Exception as e:
            self.logger.error(
                f"批量写入异常，批次保留待重试: index={target}, {e}",
                exc_info=True,
                extra={"index": target, "pending": count},
            )
            raise

        if response.errors:
            payload = json.dumps(response.item_errors, ensure_ascii=False, default=str)
            message = f"批量写入存在错误，批次保留待重试: index={target}\n{payload}"
            self.logger.error(
                message,
                extra={"index": target, "error_count": len(response.item_errors)},
            )
            raise BulkWriteError(message, index=target, errors=response.item_errors)

        # 只移除本次提交的文档
        del self._documents[:count]
        self.logger.debug(
            f"批量写入成功: index={target}, 提交{len(actions)}条",
            extra={"index": target, "submitted": len(actions)},
        )
        return BulkOutcome(
            index=target,
            flushed=True,
            submitted=len(actions),
            pending=len(self._documents),
        )
