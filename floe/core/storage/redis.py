"""
Redis 缓存客户端

结果缓存使用的字符串操作
"""

import json
from typing import Any, Optional

import redis.asyncio as aioredis

from floe.core.config import get_settings
from floe.exceptions import CacheError
from floe.utils import get_logger

logger = get_logger("storage.redis")


class RedisClient:
    """Redis异步客户端"""

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        password: Optional[str] = None,
        db: Optional[int] = None,
        client: Optional[aioredis.Redis] = None,
        **kwargs: Any,
    ) -> None:
        """
        初始化Redis客户端

        Args:
            host: Redis主机
            port: Redis端口
            password: Redis密码
            db: 数据库编号
            client: 已创建的 redis.asyncio 客户端（可选）
            **kwargs: 其他参数
        """
        settings = get_settings()

        self.host = host or settings.redis_host
        self.port = port or settings.redis_port
        self.password = password or settings.redis_password
        self.db = db if db is not None else settings.redis_db

        if client is not None:
            self.client = client
        else:
            # 构建连接URL
            if self.password:
                url = f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
            else:
                url = f"redis://{self.host}:{self.port}/{self.db}"

            self.client = aioredis.from_url(
                url,
                encoding="utf-8",
                decode_responses=True,
                **kwargs,
            )

        logger.info(
            "Redis客户端初始化完成",
            extra={"host": self.host, "port": self.port, "db": self.db},
        )

    async def get(self, key: str) -> Optional[Any]:
        """
        获取缓存值

        Args:
            key: 键

        Returns:
            值（JSON反序列化），不存在返回None
        """
        try:
            value = await self.client.get(key)
            if value is None:
                return None
            return json.loads(value)
        except json.JSONDecodeError:
            # 如果不是JSON，直接返回字符串
            return value
        except Exception as e:
            logger.error(f"获取缓存失败: {e}", exc_info=True)
            raise CacheError(f"获取缓存失败: {e}") from e

    async def set(
        self,
        key: str,
        value: Any,
        expire: Optional[int] = None,
    ) -> bool:
        """
        设置缓存值

        Args:
            key: 键
            value: 值（自动JSON序列化）
            expire: 过期时间（秒）

        Returns:
            设置成功返回True
        """
        try:
            if not isinstance(value, str):
                value = json.dumps(value, ensure_ascii=False, default=str)

            await self.client.set(key, value, ex=expire)
            return True
        except Exception as e:
            logger.error(f"设置缓存失败: {e}", exc_info=True)
            raise CacheError(f"设置缓存失败: {e}") from e

    async def delete(self, *keys: str) -> int:
        """
        删除缓存

        Args:
            *keys: 键列表

        Returns:
            删除的键数量
        """
        if not keys:
            return 0
        try:
            return await self.client.delete(*keys)
        except Exception as e:
            logger.error(f"删除缓存失败: {e}", exc_info=True)
            raise CacheError(f"删除缓存失败: {e}") from e

    async def expire(self, key: str, seconds: int) -> bool:
        """
        设置过期时间

        Args:
            key: 键
            seconds: 秒数

        Returns:
            设置成功返回True
        """
        try:
            return bool(await self.client.expire(key, seconds))
        except Exception as e:
            logger.error(f"设置过期时间失败: {e}", exc_info=True)
            return False

    async def close(self) -> None:
        """关闭Redis连接"""
        await self.client.aclose()
        logger.info("Redis连接已关闭")
