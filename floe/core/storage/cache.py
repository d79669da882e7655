"""
检索结果缓存

以 {"type": 类型标签, "payload": 数据} 的信封格式存入Redis，
读取时类型标签不一致视为未命中。采用滑动过期：每次命中都会刷新过期时间。
"""

import logging
import uuid
from typing import Any, Optional, Set

from floe.core.config import get_settings
from floe.core.storage.redis import RedisClient
from floe.utils import get_logger


class ResultCache:
    """检索结果缓存"""

    def __init__(
        self,
        redis_client: RedisClient,
        prefix: Optional[str] = None,
        ttl: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        初始化结果缓存

        Args:
            redis_client: Redis客户端
            prefix: 缓存键前缀（默认 floe-cache）
            ttl: 滑动过期时间（秒，默认900）
            logger: 日志器（可选）
        """
        settings = get_settings()
        self.redis = redis_client
        self.prefix = prefix or settings.cache_prefix
        self.ttl = ttl or settings.cache_ttl
        self.logger = logger or get_logger("storage.cache")
        # 本实例写入过的完整缓存键
        self._keys: Set[str] = set()

    @property
    def keys(self) -> Set[str]:
        """本实例写入过的缓存键"""
        return set(self._keys)

    def full_key(self, key: str, type_tag: str) -> str:
        """拼接完整缓存键：{prefix}-{type_tag}-{key}"""
        return f"{self.prefix}-{type_tag}-{key}"

    async def get(self, key: str, type_tag: str) -> Optional[Any]:
        """
        读取缓存

        Args:
            key: 缓存键
            type_tag: 期望的数据类型标签

        Returns:
            缓存的数据，未命中返回None
        """
        full_key = self.full_key(key, type_tag)
        envelope = await self.redis.get(full_key)
        if envelope is None:
            return None

        if not isinstance(envelope, dict) or envelope.get("type") != type_tag:
            self.logger.warning(
                "缓存类型标签不匹配，视为未命中",
                extra={"cache_key": full_key, "expected_type": type_tag},
            )
            return None

        await self.redis.expire(full_key, self.ttl)
        return envelope.get("payload")

    async def set(self, data: Any, type_tag: str, key: Optional[str] = None) -> str:
        """
        写入缓存

        Args:
            data: 可JSON序列化的数据
            type_tag: 数据类型标签
            key: 缓存键（可选，默认生成UUID）

        Returns:
            使用的缓存键
        """
        if key is None:
            key = str(uuid.uuid4())

        full_key = self.full_key(key, type_tag)
        await self.redis.set(full_key, {"type": type_tag, "payload": data}, expire=self.ttl)
        self._keys.add(full_key)
        return key

    async def clear(self, key: Optional[str] = None, type_tag: Optional[str] = None) -> int:
        """
        清除缓存

        指定 key 和 type_tag 时只清除该条（非本实例写入的键不处理），否则清除本实例写入的全部缓存。

        Returns:
            删除的键数量
        """
        if key is not None and type_tag is not None:
            full_key = self.full_key(key, type_tag)
            if full_key not in self._keys:
                return 0
            self._keys.discard(full_key)
            return await self.redis.delete(full_key)

        tracked = list(self._keys)
        self._keys.clear()
        return await self.redis.delete(*tracked)
