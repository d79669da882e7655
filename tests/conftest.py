"""Pytest configuration and shared fixtures."""

import json
from typing import Any, Dict, List, Optional

import pytest

from floe.core.storage.base import BulkResponse, SearchBackend, SearchResponse


class FakeBackend(SearchBackend):
    """In-memory search backend that records every call.

    Queued responses are consumed in order; when a queue is empty a neutral
    default response is returned. Exceptions placed in a queue are raised.
    """

    def __init__(self) -> None:
        self.bulk_calls: List[tuple] = []
        self.bulk_responses: List[Any] = []
        self.search_calls: List[Dict[str, Any]] = []
        self.search_responses: List[Any] = []
        self.advance_calls: List[tuple] = []
        self.advance_responses: List[Any] = []
        self.closed: List[str] = []
        self.close_error: Optional[Exception] = None
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.get_calls: List[tuple] = []
        self.get_error: Optional[Exception] = None
        self.indices: List[str] = []
        self.deleted: List[str] = []
        self.failing_deletes: set = set()

    @staticmethod
    def _next(queue: List[Any], default: Any) -> Any:
        if not queue:
            return default
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def bulk_write(self, index, actions):
        self.bulk_calls.append((index, list(actions)))
        return self._next(
            self.bulk_responses, BulkResponse(errors=False, success_count=len(actions))
        )

    async def search(self, index, query, from_=0, size=10, sort=None, scroll=None):
        self.search_calls.append(
            {
                "index": index,
                "query": query,
                "from_": from_,
                "size": size,
                "sort": sort,
                "scroll": scroll,
            }
        )
        return self._next(self.search_responses, SearchResponse())

    async def scroll_advance(self, cursor_id, ttl):
        self.advance_calls.append((cursor_id, ttl))
        return self._next(self.advance_responses, SearchResponse(cursor_id=cursor_id))

    async def scroll_close(self, cursor_id):
        self.closed.append(cursor_id)
        if self.close_error is not None:
            raise self.close_error

    async def get_by_id(self, index, doc_id):
        self.get_calls.append((index, doc_id))
        if self.get_error is not None:
            raise self.get_error
        return self.documents.get(doc_id)

    async def list_indices(self):
        return list(self.indices)

    async def delete_index(self, name):
        self.deleted.append(name)
        return name not in self.failing_deletes


class FakeRedisClient:
    """Stand-in for RedisClient that keeps JSON values in a dict."""

    def __init__(self) -> None:
        self.store: Dict[str, str] = {}
        self.expirations: Dict[str, int] = {}

    async def get(self, key: str) -> Optional[Any]:
        value = self.store.get(key)
        return None if value is None else json.loads(value)

    async def set(self, key: str, value: Any, expire: Optional[int] = None) -> bool:
        self.store[key] = json.dumps(value)
        if expire is not None:
            self.expirations[key] = expire
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def expire(self, key: str, seconds: int) -> bool:
        if key not in self.store:
            return False
        self.expirations[key] = seconds
        return True


def scroll_pages(backend: FakeBackend, pages: List[List[Any]], cursor_id: str = "c1") -> None:
    """Queue a scroll where the first page comes from search and the rest from advance."""
    first, *rest = pages
    backend.search_responses.append(SearchResponse(documents=list(first), cursor_id=cursor_id))
    for page in rest:
        backend.advance_responses.append(SearchResponse(documents=list(page), cursor_id=cursor_id))


@pytest.fixture
def backend() -> FakeBackend:
    """Create an empty fake backend."""
    return FakeBackend()


@pytest.fixture
def redis_client() -> FakeRedisClient:
    """Create an in-memory Redis stand-in."""
    return FakeRedisClient()
