"""Tests for the query coordinator."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import TABLE_ID, make_page, settle
from datagrid.models.query_core import FetchStatus, QueryDescriptor
from datagrid.models.view_state import ColumnFilter
from datagrid.services.query_coordinator import QueryCoordinator


def descriptor(page=0, filters=None):
    return QueryDescriptor(page=page, page_size=10, column_filters=filters or [])


@pytest.fixture
def coordinator(fetcher):
    """Create a coordinator over the controllable fetcher."""
    return QueryCoordinator(fetcher)


@pytest.mark.asyncio
async def test_fetch_commits_result(coordinator, fetcher):
    """Test that a completed fetch becomes the current result."""
    result = coordinator.request(TABLE_ID, descriptor())
    assert result.status == FetchStatus.PENDING
    assert result.is_fetching is True

    await settle()
    assert fetcher.calls == [{"page": 0, "pageSize": 10, "sorting": [], "columnFilters": []}]

    fetcher.resolve(0, make_page(10, count=826, pages=83))
    result = await coordinator.wait(TABLE_ID)

    assert result.status == FetchStatus.SUCCESS
    assert result.is_fetching is False
    assert result.data.total_count == 826
    assert result.data.page_count == 83
    assert len(result.data.rows) == 10


@pytest.mark.asyncio
async def test_equal_descriptors_fetch_once(coordinator, fetcher):
    """Test that structurally equal descriptors are de-duplicated."""
    coordinator.request(TABLE_ID, descriptor(filters=[ColumnFilter(column_id="status", value="alive")]))
    coordinator.request(TABLE_ID, descriptor(filters=[{"id": "status", "value": "alive"}]))
    await settle()

    assert len(fetcher.calls) == 1
    assert coordinator.fetch_count == 1


@pytest.mark.asyncio
async def test_late_completion_of_superseded_query_is_discarded(coordinator, fetcher):
    """Test that A resolving after B never overwrites B's result."""
    coordinator.request(TABLE_ID, descriptor(page=1))
    coordinator.request(TABLE_ID, descriptor(page=2))
    await settle()
    assert len(fetcher.calls) == 2

    fetcher.resolve(1, make_page(3, offset=20))
    await settle()
    fetcher.resolve(0, make_page(5, offset=10))
    await settle()

    result = coordinator.current_result(TABLE_ID)
    assert result.descriptor == descriptor(page=2)
    assert [row["id"] for row in result.data.rows] == [20, 21, 22]


@pytest.mark.asyncio
async def test_stale_completion_while_current_pending(coordinator, fetcher):
    """Test that the current query stays pending when only a stale fetch completed."""
    coordinator.request(TABLE_ID, descriptor(page=1))
    coordinator.request(TABLE_ID, descriptor(page=0, filters=[ColumnFilter(column_id="status", value="alive")]))
    await settle()

    fetcher.resolve(0, make_page(10))
    await settle()

    result = coordinator.current_result(TABLE_ID)
    assert result.status == FetchStatus.PENDING
    assert result.data is None


@pytest.mark.asyncio
async def test_returning_to_cached_query_shows_cached_rows(coordinator, fetcher):
    """Test that a previously fetched page is shown while it is fetched again."""
    coordinator.request(TABLE_ID, descriptor(page=0))
    await settle()
    fetcher.resolve(0, make_page(2))
    await settle()

    coordinator.request(TABLE_ID, descriptor(page=1))
    result = coordinator.request(TABLE_ID, descriptor(page=0))

    assert result.status == FetchStatus.SUCCESS
    assert result.is_fetching is True
    assert len(result.data.rows) == 2


@pytest.mark.asyncio
async def test_fetch_failure_is_captured(coordinator, fetcher):
    """Test that a remote failure becomes an error result, not an exception."""
    coordinator.request(TABLE_ID, descriptor())
    await settle()

    fetcher.fail(0, ConnectionError("unreachable"))
    result = await coordinator.wait(TABLE_ID)

    assert result.status == FetchStatus.ERROR
    assert "unreachable" in result.error
    assert result.data is None


@pytest.mark.asyncio
async def test_malformed_payload_is_a_fetch_error(coordinator, fetcher):
    """Test that a response without paging info is rejected."""
    coordinator.request(TABLE_ID, descriptor())
    await settle()

    fetcher.resolve(0, {"results": []})
    result = await coordinator.wait(TABLE_ID)

    assert result.status == FetchStatus.ERROR


@pytest.mark.asyncio
async def test_refetch_keeps_rows(coordinator, fetcher):
    """Test a background refetch of the current query."""
    coordinator.request(TABLE_ID, descriptor())
    await settle()
    fetcher.resolve(0, make_page(4))
    await settle()

    result = coordinator.refetch(TABLE_ID)
    assert result.is_fetching is True
    assert len(result.data.rows) == 4

    await settle()
    fetcher.fail(1, TimeoutError("slow"))
    result = await coordinator.wait(TABLE_ID)

    assert result.status == FetchStatus.ERROR
    assert len(result.data.rows) == 4


@pytest.mark.asyncio
async def test_refetch_without_query_does_nothing(coordinator, fetcher):
    """Test refetching a table that never issued a query."""
    result = coordinator.refetch(TABLE_ID)
    await settle()

    assert fetcher.calls == []
    assert result.status == FetchStatus.PENDING


@pytest.mark.asyncio
async def test_tables_do_not_interfere():
    """Test that descriptors are scoped per table identity."""
    fetcher = AsyncMock(return_value=make_page(1))
    coordinator = QueryCoordinator(fetcher)

    coordinator.request("first", descriptor())
    coordinator.request("second", descriptor())
    await coordinator.wait("first")
    await coordinator.wait("second")

    assert fetcher.await_count == 2
    assert coordinator.current_result("first").status == FetchStatus.SUCCESS
    assert coordinator.current_result("second").status == FetchStatus.SUCCESS


@pytest.mark.asyncio
async def test_listeners_notified_on_commit():
    """Test result change notifications."""
    coordinator = QueryCoordinator(AsyncMock(return_value=make_page(1)))
    listener = MagicMock()
    coordinator.subscribe(listener)

    coordinator.request(TABLE_ID, descriptor())
    await coordinator.wait(TABLE_ID)

    statuses = [call.args[1].status for call in listener.call_args_list]
    assert statuses == [FetchStatus.PENDING, FetchStatus.SUCCESS]


def test_request_outside_event_loop_leaves_table_untouched():
    """Test that a request made without a running loop can be repeated later."""
    fetcher = AsyncMock(return_value=make_page(3))
    coordinator = QueryCoordinator(fetcher)

    with pytest.raises(RuntimeError):
        coordinator.request(TABLE_ID, descriptor(page=2))

    assert coordinator.current_result(TABLE_ID).descriptor is None
    assert coordinator.fetch_count == 0

    async def load():
        coordinator.request(TABLE_ID, descriptor(page=2))
        return await coordinator.wait(TABLE_ID)

    result = asyncio.run(load())

    fetcher.assert_awaited_once()
    assert result.status == FetchStatus.SUCCESS
    assert len(result.data.rows) == 3


@pytest.mark.asyncio
async def test_cache_keeps_most_recent_pages():
    """Test that the page cache of a table is bounded."""
    coordinator = QueryCoordinator(AsyncMock(return_value=make_page(1)), cache_size=2)

    for page in (0, 1, 2):
        coordinator.request(TABLE_ID, descriptor(page=page))
        await coordinator.wait(TABLE_ID)

    result = coordinator.request(TABLE_ID, descriptor(page=0))
    assert result.status == FetchStatus.PENDING
    assert result.data is None

    await coordinator.wait(TABLE_ID)
    result = coordinator.request(TABLE_ID, descriptor(page=2))
    assert result.status == FetchStatus.SUCCESS
    assert result.is_fetching is True


@pytest.mark.asyncio
async def test_forget_drops_table_state(coordinator, fetcher):
    """Test that a forgotten table loses its cache and in-flight fetch."""
    coordinator.request(TABLE_ID, descriptor(page=0))
    await settle()
    fetcher.resolve(0, make_page(2))
    await settle()
    coordinator.request(TABLE_ID, descriptor(page=1))
    await settle()

    coordinator.forget(TABLE_ID)
    await settle()

    result = coordinator.current_result(TABLE_ID)
    assert result.descriptor is None
    assert result.data is None
    assert fetcher.futures[1].cancelled()

    result = coordinator.request(TABLE_ID, descriptor(page=0))
    assert result.status == FetchStatus.PENDING


@pytest.mark.asyncio
async def test_superseded_fetch_still_fills_cache(coordinator, fetcher):
    """Test that a superseded fetch keeps running and caches its page."""
    coordinator.request(TABLE_ID, descriptor(page=1))
    coordinator.request(TABLE_ID, descriptor(page=2))
    await settle()

    fetcher.resolve(0, make_page(4, offset=10))
    await settle()

    result = coordinator.request(TABLE_ID, descriptor(page=1))
    assert result.status == FetchStatus.SUCCESS
    assert [row["id"] for row in result.data.rows] == [10, 11, 12, 13]
