"""
存储模块

提供检索后端接口、Elasticsearch后端、Redis客户端及结果缓存
"""

from floe.core.storage.base import BulkResponse, SearchBackend, SearchResponse
from floe.core.storage.cache import ResultCache
from floe.core.storage.elasticsearch import (
    ESConfig,
    ElasticsearchBackend,
    create_es_client,
)
from floe.core.storage.redis import RedisClient

__all__ = [
    # Backend
    "SearchBackend",
    "BulkResponse",
    "SearchResponse",
    # Elasticsearch
    "ESConfig",
    "ElasticsearchBackend",
    "create_es_client",
    # Redis
    "RedisClient",
    "ResultCache",
]
