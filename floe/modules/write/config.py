"""
批量写入配置
"""

from typing import Literal, Optional

from pydantic import Field

from floe.core.config import get_settings
from floe.models.base import FloeBaseModel

DEFAULT_BULK_SIZE = 5


class BulkWriterConfig(FloeBaseModel):
    """
    批量写入配置

    构造后不可修改：阈值与滚动日期模式在写入器的生命周期内固定。
    """

    default_index: Optional[str] = Field(default=None, description="默认写入索引")
    bulk_size: int = Field(
        default=DEFAULT_BULK_SIZE,
        ge=0,
        description="累计多少文档触发一次批量写入（0表示每次写入立即提交）",
    )
    rolling_date: bool = Field(default=False, description="是否按日期（UTC）滚动索引")
    rolling_date_position: Literal["suffix", "prefix"] = Field(
        default="suffix", description="滚动日期拼接位置"
    )
    id_field: str = Field(default="id", description="文档标识字段（用于去重和 _id）")
    serialize_lock: bool = Field(
        default=True, description="是否用互斥锁串行化 add 与 flush"
    )

    @classmethod
    def from_settings(cls, **overrides) -> "BulkWriterConfig":
        """从应用配置创建，overrides 优先"""
        settings = get_settings()
        values = {
            "default_index": settings.default_index,
            "bulk_size": settings.bulk_size,
            "rolling_date": settings.rolling_date,
            "rolling_date_position": settings.rolling_date_position,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
