"""
Elasticsearch 检索后端

基于 AsyncElasticsearch 实现批量写入、检索、滚动游标和索引管理
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from elasticsearch import AsyncElasticsearch
from elasticsearch.exceptions import ApiError, NotFoundError

from floe.core.config import get_settings
from floe.core.storage.base import BulkResponse, SearchBackend, SearchResponse
from floe.utils import get_logger


@dataclass
class ESConfig:
    """ES配置类"""

    hosts: Union[str, List[str]]
    username: Optional[str] = None
    password: Optional[str] = None
    scheme: str = "http"
    timeout: int = 30
    max_retries: int = 3
    verify_certs: bool = False

    @classmethod
    def from_settings(cls) -> "ESConfig":
        """从应用配置创建"""
        settings = get_settings()
        return cls(
            hosts=settings.es_url,
            username=settings.es_username,
            password=settings.es_password,
            scheme=settings.es_scheme,
            timeout=settings.es_timeout,
            max_retries=settings.es_max_retries,
            verify_certs=settings.es_verify_certs,
        )

    def normalized_hosts(self) -> List[str]:
        """将hosts转换为完整的URL格式（包含scheme）"""
        raw_hosts = self.hosts if isinstance(self.hosts, list) else [self.hosts]
        return [
            host if host.startswith(("http://", "https://")) else f"{self.scheme}://{host}"
            for host in raw_hosts
        ]


def create_es_client(config: Optional[ESConfig] = None, **kwargs: Any) -> AsyncElasticsearch:
    """
    创建 AsyncElasticsearch 客户端

    Args:
        config: ES配置（默认从应用配置读取）
        **kwargs: 透传给 AsyncElasticsearch 的其他参数

    Returns:
        AsyncElasticsearch 实例
    """
    config = config or ESConfig.from_settings()

    client_config: Dict[str, Any] = {
        "hosts": config.normalized_hosts(),
        "request_timeout": config.timeout,
        "max_retries": config.max_retries,
        "verify_certs": config.verify_certs,
        **kwargs,
    }
    if config.username and config.password:
        client_config["basic_auth"] = (config.username, config.password)

    return AsyncElasticsearch(**client_config)


def _error_reason(error: ApiError) -> str:
    """从 ApiError 中提取可读的错误原因"""
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict):
            root_causes = err.get("root_cause") or []
            if root_causes and isinstance(root_causes[0], dict):
                return root_causes[0].get("reason") or err.get("reason") or str(error)
            return err.get("reason") or err.get("type") or str(error)
        if isinstance(err, str):
            return err
    return str(getattr(error, "message", None) or error)


def _body(response: Any) -> Dict[str, Any]:
    # ObjectApiResponse 包装了响应体
    return getattr(response, "body", response)


def _to_search_response(response: Any) -> SearchResponse:
    """将ES响应转换为 SearchResponse"""
    response = _body(response)
    hits = response.get("hits", {})
    total = hits.get("total")
    if isinstance(total, dict):
        total = total.get("value")
    return SearchResponse(
        documents=[hit.get("_source", {}) for hit in hits.get("hits", [])],
        cursor_id=response.get("_scroll_id"),
        valid=True,
        total=total,
    )


class ElasticsearchBackend(SearchBackend):
    """Elasticsearch 异步检索后端"""

    def __init__(
        self,
        client: Optional[AsyncElasticsearch] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        """
        初始化后端

        Args:
            client: AsyncElasticsearch 客户端（可选，默认按应用配置创建）
            logger: 日志器（可选）
        """
        self.client = client if client is not None else create_es_client()
        self.logger = logger or get_logger("storage.elasticsearch")

    async def bulk_write(
        self, index: str, actions: List[Dict[str, Any]]
    ) -> BulkResponse:
        """
        批量写入

        Args:
            index: 目标索引
            actions: 写入操作列表（_source 与可选 _id）

        Returns:
            BulkResponse，errors=True 时 item_errors 为逐条错误
        """
        from elasticsearch.helpers import async_bulk

        if not actions:
            return BulkResponse(errors=False, item_errors=[], success_count=0)

        es_actions = [{"_index": index, **action} for action in actions]

        try:
            success_count, errors = await async_bulk(
                self.client, es_actions, raise_on_error=False, stats_only=False
            )
        except Exception as e:
            self.logger.error(f"批量写入异常: index={index}, {e}", exc_info=True)
            raise

        item_errors = errors if isinstance(errors, list) else []
        self.logger.info(
            f"批量写入完成: 成功{success_count}, 失败{len(item_errors)}",
            extra={"index": index},
        )
        return BulkResponse(
            errors=bool(item_errors),
            item_errors=item_errors,
            success_count=success_count,
        )

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
        执行检索

        索引不存在时返回空结果（没有游标），其他后端错误返回 valid=False。
        """
        search_params: Dict[str, Any] = {
            "index": index,
            "query": query,
            "from_": from_,
            "size": size,
        }
        if sort:
            search_params["sort"] = sort
        if scroll:
            search_params["scroll"] = scroll

        try:
            response = await self.client.search(**search_params)
        except NotFoundError:
            self.logger.info(f"索引不存在: {index}")
            return SearchResponse()
        except ApiError as e:
            reason = _error_reason(e)
            self.logger.error(f"检索失败: index={index}, {reason}")
            return SearchResponse(valid=False, error_reason=reason)
        except Exception as e:
            self.logger.error(f"检索异常: index={index}, {e}", exc_info=True)
            raise

        return _to_search_response(response)

    async def scroll_advance(self, cursor_id: str, ttl: str) -> SearchResponse:
        """使用游标获取下一页，游标失效时返回 valid=False"""
        try:
            response = await self.client.scroll(scroll_id=cursor_id, scroll=ttl)
        except ApiError as e:
            reason = _error_reason(e)
            self.logger.error(f"滚动查询失败: {reason}")
            return SearchResponse(cursor_id=cursor_id, valid=False, error_reason=reason)
        except Exception as e:
            self.logger.error(f"滚动查询异常: {e}", exc_info=True)
            raise

        result = _to_search_response(response)
        if result.cursor_id is None:
            result.cursor_id = cursor_id
        return result

    async def scroll_close(self, cursor_id: str) -> None:
        """释放游标，游标已过期时忽略"""
        try:
            await self.client.clear_scroll(scroll_id=cursor_id)
        except NotFoundError:
            self.logger.debug("游标已不存在，忽略释放")
        except Exception as e:
            self.logger.error(f"释放游标异常: {e}", exc_info=True)
            raise

    async def get_by_id(self, index: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """
        按ID获取文档

        使用 ids 查询而非 GET，以支持滚动索引的通配模式（如 ``orders*``）。

        Args:
            index: 索引或索引模式
            doc_id: 文档ID

        Returns:
            文档内容，不存在返回None
        """
        try:
            response = await self.client.search(
                index=index,
                query={"ids": {"values": [doc_id]}},
                size=1,
            )
        except NotFoundError:
            return None
        except Exception as e:
            self.logger.error(f"获取文档失败: {e}", exc_info=True)
            raise

        hits = _body(response).get("hits", {}).get("hits", [])
        if not hits:
            return None
        return hits[0].get("_source")

    async def list_indices(self) -> List[str]:
        """列出所有索引"""
        try:
            response = await self.client.indices.get(index="*")
        except Exception as e:
            self.logger.error(f"获取索引列表失败: {e}", exc_info=True)
            raise
        return list(_body(response))

    async def delete_index(self, name: str) -> bool:
        """
        删除索引

        Args:
            name: 索引名称

        Returns:
            删除成功返回True，索引不存在返回False
        """
        try:
            response = await self.client.indices.delete(index=name)
        except NotFoundError:
            return False
        except Exception as e:
            self.logger.error(f"删除索引失败: {e}", exc_info=True)
            raise

        self.logger.info(f"索引删除成功: {name}")
        return bool(_body(response).get("acknowledged", False))

    async def close(self) -> None:
        """关闭客户端连接"""
        await self.client.close()
        self.logger.info("Elasticsearch连接已关闭")

    async def ping(self) -> bool:
        """
        测试连接

        Returns:
            连接成功返回True
        """
        try:
            return await self.client.ping()
        except Exception as e:
            self.logger.error(f"ES连接测试失败: {e}")
            return False
