"""Tests for the scroll engine."""

import contextlib
import logging

import pytest

from floe.core.storage.base import SearchResponse
from floe.exceptions import ScrollStateError
from floe.modules.query import compose
from floe.modules.scroll import PageStatus, ScrollEngine, ScrollState
from tests.conftest import FakeBackend, scroll_pages


@pytest.fixture
def engine(backend: FakeBackend) -> ScrollEngine:
    """Create an engine over the fake backend."""
    return ScrollEngine(backend, scroll_time="30s", page_size=2)


class TestDrain:
    """Tests for draining a cursor to completion."""

    async def test_pages_are_concatenated_in_order(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        scroll_pages(backend, [["a", "b"], ["c"], []])

        result = await engine.drain(compose(), "orders*")

        assert result.ok
        assert list(result) == ["a", "b", "c"]
        assert backend.closed == ["c1"]

    async def test_broken_cursor_keeps_fetched_documents(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        scroll_pages(backend, [["a", "b"]])
        backend.advance_responses.append(
            SearchResponse(valid=False, error_reason="No search context found for id [1]")
        )

        result = await engine.drain(compose(), "orders*")

        assert not result.ok
        assert result.documents == ["a", "b"]
        assert result.error == "No search context found for id [1]"
        assert backend.closed == ["c1"]

    async def test_close_failure_after_broken_cursor_keeps_result(
        self, backend: FakeBackend, engine: ScrollEngine, caplog
    ) -> None:
        scroll_pages(backend, [["a", "b"]])
        backend.advance_responses.append(
            SearchResponse(valid=False, error_reason="No search context found for id [1]")
        )
        backend.close_error = ConnectionError("connection reset")

        with caplog.at_level(logging.WARNING, logger="floe"):
            result = await engine.drain(compose(), "orders*")

        assert result.documents == ["a", "b"]
        assert result.error == "No search context found for id [1]"
        assert backend.closed == ["c1"]
        assert "释放失效游标失败" in caplog.text

    async def test_missing_cursor_is_empty_not_error(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        backend.search_responses.append(SearchResponse(documents=[], cursor_id=None))

        result = await engine.drain(compose(), "missing*")

        assert result.ok
        assert len(result) == 0
        assert backend.closed == []
        assert backend.advance_calls == []

    async def test_empty_first_page_closes_cursor(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        scroll_pages(backend, [[]])

        result = await engine.drain(compose(), "orders*")

        assert len(result) == 0
        assert backend.closed == ["c1"]
        assert backend.advance_calls == []

    async def test_transport_error_propagates_and_closes(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        scroll_pages(backend, [["a"]])
        backend.advance_responses.append(ConnectionError("connection reset"))

        with pytest.raises(ConnectionError):
            await engine.drain(compose(), "orders*")

        assert backend.closed == ["c1"]

    async def test_query_and_scroll_parameters(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        scroll_pages(backend, [[]])
        query = compose(match_field="name", match_value="Rex", sort=("age", "asc"))

        await engine.drain(query, "animals*", page_size=50, scroll_time="5m")

        call = backend.search_calls[0]
        assert call["index"] == "animals*"
        assert call["query"] == {"match": {"name": "Rex"}}
        assert call["sort"] == [{"age": {"order": "asc"}}]
        assert call["size"] == 50
        assert call["scroll"] == "5m"

    async def test_latest_cursor_id_is_used(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        backend.search_responses.append(SearchResponse(documents=["a"], cursor_id="c1"))
        backend.advance_responses.append(SearchResponse(documents=["b"], cursor_id="c2"))
        backend.advance_responses.append(SearchResponse(documents=[], cursor_id="c2"))

        await engine.drain(compose(), "orders*")

        assert backend.advance_calls == [("c1", "30s"), ("c2", "30s")]
        assert backend.closed == ["c2"]


class TestManualCursor:
    """Tests for the open/advance/close protocol."""

    async def test_open_advance_close(self, backend: FakeBackend, engine: ScrollEngine) -> None:
        scroll_pages(backend, [["a"], ["b"], []])

        first = await engine.open(compose(), "orders*")
        assert first.status == PageStatus.CONTINUE
        assert first.handle.state == ScrollState.OPENED

        second = await engine.advance(first.handle)
        third = await engine.advance(first.handle)
        await engine.close(first.handle)

        assert second.documents == ["b"]
        assert third.status == PageStatus.END
        assert first.handle.closed

    async def test_advance_after_close_raises(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        scroll_pages(backend, [["a"]])
        page = await engine.open(compose(), "orders*")
        await engine.close(page.handle)

        with pytest.raises(ScrollStateError):
            await engine.advance(page.handle)

        assert backend.advance_calls == []

    async def test_double_close_is_noop(self, backend: FakeBackend, engine: ScrollEngine) -> None:
        scroll_pages(backend, [["a"]])
        page = await engine.open(compose(), "orders*")

        await engine.close(page.handle)
        await engine.close(page.handle)

        assert backend.closed == ["c1"]

    async def test_close_none_is_noop(self, backend: FakeBackend, engine: ScrollEngine) -> None:
        await engine.close(None)

        assert backend.closed == []

    async def test_invalid_open_closes_returned_cursor(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        backend.search_responses.append(
            SearchResponse(cursor_id="c1", valid=False, error_reason="shard failure")
        )

        page = await engine.open(compose(), "orders*")

        assert page.status == PageStatus.ERROR
        assert page.error == "shard failure"
        assert backend.closed == ["c1"]

    async def test_invalid_open_tolerates_close_failure(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        backend.search_responses.append(
            SearchResponse(cursor_id="c1", valid=False, error_reason="shard failure")
        )
        backend.close_error = ConnectionError("connection reset")

        page = await engine.open(compose(), "orders*")

        assert page.status == PageStatus.ERROR
        assert page.error == "shard failure"
        assert page.handle.closed

    async def test_early_exit_from_pages_closes_cursor(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        scroll_pages(backend, [["a"], ["b"], ["c"], []])

        async with contextlib.aclosing(engine.pages(compose(), "orders*")) as pages:
            async for page in pages:
                break

        assert backend.closed == ["c1"]


class TestOffsetPaging:
    """Tests for from/size paging."""

    async def test_page_values_below_one_are_clamped(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        await engine.page(compose(), "orders*", page_number=0, page_size=0)
        await engine.page(compose(), "orders*", page_number=1, page_size=1)

        clamped, explicit = backend.search_calls
        assert clamped == explicit
        assert clamped["from_"] == 0
        assert clamped["size"] == 1

    async def test_offset_computation(self, backend: FakeBackend, engine: ScrollEngine) -> None:
        backend.search_responses.append(SearchResponse(documents=["u", "v"]))

        result = await engine.page(compose(), "orders*", page_number=3, page_size=10)

        assert backend.search_calls[0]["from_"] == 20
        assert backend.search_calls[0]["scroll"] is None
        assert result.documents == ["u", "v"]

    async def test_invalid_response_reports_error(
        self, backend: FakeBackend, engine: ScrollEngine
    ) -> None:
        backend.search_responses.append(SearchResponse(valid=False, error_reason="bad query"))

        result = await engine.page(compose(), "orders*")

        assert result.error == "bad query"
        assert result.documents == []
