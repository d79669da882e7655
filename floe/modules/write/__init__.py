"""
批量写入模块

缓冲文档并按阈值提交 bulk 请求
"""

from floe.modules.write.config import DEFAULT_BULK_SIZE, BulkWriterConfig
from floe.modules.write.writer import (
    BulkOutcome,
    BulkWriter,
    document_id,
    document_to_dict,
)

__all__ = [
    "BulkWriter",
    "BulkWriterConfig",
    "BulkOutcome",
    "DEFAULT_BULK_SIZE",
    "document_id",
    "document_to_dict",
]
