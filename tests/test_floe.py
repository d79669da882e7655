"""Tests for the Floe facade."""

import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import BaseModel

from floe import Floe
from floe.core.config import get_settings
from floe.core.storage.base import BulkResponse, SearchResponse
from floe.core.storage.cache import ResultCache
from floe.core.storage.redis import RedisClient
from floe.exceptions import BulkWriteError, ConfigError, ReservedIndexError
from floe.models import BackendError, Found, NotFound
from floe.modules.query import TimeWindow
from tests.conftest import FakeBackend, FakeRedisClient, scroll_pages


class Animal(BaseModel):
    id: str
    name: str


@pytest.fixture
def floe(backend: FakeBackend) -> Floe:
    """Create a Floe bound to the fake backend."""
    return Floe(backend, default_index="orders", bulk_size=2)


@pytest.fixture
def cached_floe(backend: FakeBackend, redis_client: FakeRedisClient) -> Floe:
    """Create a Floe with a result cache."""
    cache = ResultCache(redis_client, prefix="test-cache", ttl=60)
    return Floe(backend, default_index="orders", cache=cache)


class TestWrite:
    """Tests for the two write flavours."""

    async def test_write_raises_on_item_errors(self, backend: FakeBackend, floe: Floe) -> None:
        backend.bulk_responses.append(BulkResponse(errors=True, item_errors=[{"index": {}}]))
        await floe.write({"id": "a"})

        with pytest.raises(BulkWriteError):
            await floe.write({"id": "b"})

        assert len(floe.writer) == 2

    async def test_best_effort_swallows_failures(
        self, backend: FakeBackend, floe: Floe, caplog
    ) -> None:
        backend.bulk_responses.append(ConnectionError("connection refused"))
        await floe.write_best_effort({"id": "a"})

        with caplog.at_level(logging.ERROR, logger="floe"):
            outcome = await floe.write_best_effort({"id": "b"})

        assert outcome is None
        assert len(floe.writer) == 2
        assert "connection refused" in caplog.text

    async def test_best_effort_swallows_config_error(self, backend: FakeBackend) -> None:
        floe = Floe(backend)

        assert await floe.write_best_effort({"id": "a"}) is None

    async def test_write_without_index_raises(self, backend: FakeBackend) -> None:
        floe = Floe(backend)

        with pytest.raises(ConfigError):
            await floe.write({"id": "a"})

    async def test_flush_remaining(self, backend: FakeBackend, floe: Floe) -> None:
        await floe.write({"id": "a"})

        outcome = await floe.flush_remaining()

        assert outcome.submitted == 1
        assert backend.bulk_calls[0][0] == "orders"


class TestFind:
    """Tests for lookup by id."""

    async def test_found(self, backend: FakeBackend, floe: Floe) -> None:
        backend.documents["42"] = {"id": "42", "name": "Rex"}

        outcome = await floe.find("42")

        assert isinstance(outcome, Found)
        assert outcome.ok
        assert outcome.document == {"id": "42", "name": "Rex"}
        assert backend.get_calls == [("orders*", "42")]

    async def test_not_found(self, floe: Floe) -> None:
        outcome = await floe.find("missing")

        assert outcome == NotFound(doc_id="missing")
        assert not outcome.ok

    async def test_backend_error(self, backend: FakeBackend, floe: Floe) -> None:
        backend.get_error = ConnectionError("connection refused")

        outcome = await floe.find("42")

        assert isinstance(outcome, BackendError)
        assert "connection refused" in outcome.reason

    async def test_document_model(self, backend: FakeBackend) -> None:
        backend.documents["42"] = {"id": "42", "name": "Rex"}
        floe = Floe(backend, default_index="animals", document_model=Animal)

        outcome = await floe.find("42")

        assert outcome.document == Animal(id="42", name="Rex")


class TestRead:
    """Tests for list, search and page."""

    async def test_list_drains_search_pattern(self, backend: FakeBackend, floe: Floe) -> None:
        scroll_pages(backend, [[{"id": "a"}], [{"id": "b"}], []])

        result = await floe.list()

        assert list(result) == [{"id": "a"}, {"id": "b"}]
        assert backend.search_calls[0]["index"] == "orders*"
        assert backend.search_calls[0]["query"] == {"match_all": {}}
        assert backend.search_calls[0]["scroll"] == "60s"
        assert backend.closed == ["c1"]

    async def test_list_today_adds_one_day_window(self, backend: FakeBackend, floe: Floe) -> None:
        now = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)

        with patch("floe.modules.query.composer.get_utc_now", return_value=now):
            await floe.list(list_today=True)

        query = backend.search_calls[0]["query"]
        assert query["bool"]["filter"] == [
            {"range": {"timeStamp": {"gte": "2024-03-04T12:00:00+00:00"}}}
        ]

    async def test_explicit_window_wins_over_today(self, backend: FakeBackend, floe: Floe) -> None:
        now = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)

        with patch("floe.modules.query.composer.get_utc_now", return_value=now):
            await floe.list(time_window=TimeWindow.hours(2), list_today=True)

        query = backend.search_calls[0]["query"]
        assert query["bool"]["filter"][0]["range"]["timeStamp"]["gte"] == "2024-03-05T10:00:00+00:00"

    async def test_search_uses_match(self, backend: FakeBackend, floe: Floe) -> None:
        await floe.search("animal.name", "Rex", filters=[("status", "open")], sort=("age", "des"))

        call = backend.search_calls[0]
        assert call["query"] == {
            "bool": {
                "must": [{"match": {"animal.name": "Rex"}}],
                "filter": [{"term": {"status": "open"}}],
            }
        }
        assert call["sort"] == [{"age": {"order": "desc"}}]

    async def test_broken_scroll_reports_partial_result(
        self, backend: FakeBackend, floe: Floe
    ) -> None:
        scroll_pages(backend, [[{"id": "a"}]])
        backend.advance_responses.append(SearchResponse(valid=False, error_reason="expired"))

        result = await floe.list()

        assert result.error == "expired"
        assert result.documents == [{"id": "a"}]

    async def test_page_clamps_inputs(self, backend: FakeBackend, floe: Floe) -> None:
        await floe.page(0, 0)
        await floe.page(1, 1)

        assert backend.search_calls[0] == backend.search_calls[1]

    async def test_rolling_prefix_pattern(self, backend: FakeBackend) -> None:
        floe = Floe(
            backend, default_index="orders", rolling_date=True, rolling_date_position="prefix"
        )

        await floe.list()

        assert backend.search_calls[0]["index"] == "*orders"

    async def test_results_materialized_as_model(self, backend: FakeBackend) -> None:
        scroll_pages(backend, [[{"id": "1", "name": "Rex"}], []])
        floe = Floe(backend, default_index="animals", document_model=Animal)

        result = await floe.list()

        assert result.documents == [Animal(id="1", name="Rex")]

    async def test_manual_scroll(self, backend: FakeBackend, floe: Floe) -> None:
        scroll_pages(backend, [["a"], ["b"], []])

        page = await floe.begin_scroll(page_size=1)
        collected = list(page.documents)
        while page.has_more:
            page = await floe.continue_scroll(page.handle)
            collected.extend(page.documents)
        await floe.end_scroll(page.handle)
        await floe.end_scroll(page.handle)

        assert collected == ["a", "b"]
        assert backend.search_calls[0]["size"] == 1
        assert backend.closed == ["c1"]


class TestIndexManagement:
    """Tests for index deletion."""

    async def test_delete_index(self, backend: FakeBackend, floe: Floe) -> None:
        assert await floe.delete_index("orders-2024.03.05") is True
        assert backend.deleted == ["orders-2024.03.05"]

    async def test_delete_reserved_index_is_refused(
        self, backend: FakeBackend, floe: Floe
    ) -> None:
        with pytest.raises(ReservedIndexError):
            await floe.delete_index(".kibana")

        assert backend.deleted == []

    async def test_delete_empty_name(self, backend: FakeBackend, floe: Floe) -> None:
        assert await floe.delete_index("") is False
        assert backend.deleted == []

    async def test_delete_all_skips_reserved(self, backend: FakeBackend, floe: Floe) -> None:
        backend.indices = [".kibana", "orders-2024.03.05", ".security", "animals"]

        assert await floe.delete_all_indices() is True
        assert backend.deleted == ["orders-2024.03.05", "animals"]

    async def test_delete_all_reports_failure(self, backend: FakeBackend, floe: Floe) -> None:
        backend.indices = ["orders", "animals"]
        backend.failing_deletes.add("orders")

        assert await floe.delete_all_indices() is False
        assert backend.deleted == ["orders", "animals"]


class TestCache:
    """Tests for cached reads."""

    async def test_second_read_served_from_cache(
        self, backend: FakeBackend, cached_floe: Floe
    ) -> None:
        scroll_pages(backend, [[{"id": "a"}], []])

        first = await cached_floe.list(use_cache=True)
        second = await cached_floe.list(use_cache=True)

        assert first.documents == second.documents == [{"id": "a"}]
        assert len(backend.search_calls) == 1

    async def test_cache_not_used_unless_requested(
        self, backend: FakeBackend, cached_floe: Floe
    ) -> None:
        await cached_floe.list()
        await cached_floe.list()

        assert len(backend.search_calls) == 2

    async def test_failed_result_not_cached(
        self, backend: FakeBackend, cached_floe: Floe, redis_client: FakeRedisClient
    ) -> None:
        backend.search_responses.append(SearchResponse(valid=False, error_reason="boom"))

        result = await cached_floe.list(use_cache=True)

        assert result.error == "boom"
        assert redis_client.store == {}

    async def test_flush_cached_data(
        self, backend: FakeBackend, cached_floe: Floe, redis_client: FakeRedisClient
    ) -> None:
        scroll_pages(backend, [[{"id": "a"}], []])
        await cached_floe.list(use_cache=True)
        await cached_floe.search("name", "Rex", use_cache=True)

        removed = await cached_floe.flush_cached_data()
        await cached_floe.list(use_cache=True)

        assert removed == 2
        assert len(backend.search_calls) == 3

    async def test_cache_outage_falls_back_to_backend(
        self, backend: FakeBackend, caplog
    ) -> None:
        raw = AsyncMock()
        raw.get.side_effect = ConnectionError("redis unavailable")
        raw.set.side_effect = ConnectionError("redis unavailable")
        cache = ResultCache(RedisClient(client=raw), prefix="test-cache", ttl=60)
        floe = Floe(backend, default_index="orders", cache=cache)
        scroll_pages(backend, [[{"id": "a"}], []])

        with caplog.at_level(logging.WARNING, logger="floe"):
            result = await floe.list(use_cache=True)

        assert result.ok
        assert result.documents == [{"id": "a"}]
        assert len(backend.search_calls) == 1
        raw.set.assert_awaited_once()
        assert cache.keys == set()
        assert "redis unavailable" in caplog.text

    async def test_flush_without_cache(self, floe: Floe) -> None:
        assert await floe.flush_cached_data() == 0

    def test_cache_key_is_exposed(self) -> None:
        assert Floe.cache_key("list", index="orders") == Floe.cache_key("list", index="orders")


class TestFromSettings:
    """Tests for settings-driven construction."""

    def test_defaults_from_settings(self, backend: FakeBackend, monkeypatch) -> None:
        monkeypatch.setenv("DEFAULT_INDEX", "events")
        monkeypatch.setenv("BULK_SIZE", "7")
        get_settings.cache_clear()
        try:
            floe = Floe.from_settings(backend=backend)
        finally:
            get_settings.cache_clear()

        assert floe.default_index == "events"
        assert floe.writer.config.bulk_size == 7
        assert floe.scroll_time == "60s"
        assert floe.page_size == 1000

    def test_overrides_win(self, backend: FakeBackend) -> None:
        floe = Floe.from_settings(backend=backend, default_index="audit", bulk_size=0)

        assert floe.default_index == "audit"
        assert floe.writer.config.bulk_size == 0
