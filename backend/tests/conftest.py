"""Shared fixtures for the data grid tests."""

import asyncio
from typing import Any, Dict, List

import pytest

from datagrid.core.config import Settings
from datagrid.models.view_state import ColumnDescriptor
from datagrid.services.storage.memory_storage import MemoryViewStateStorage
from datagrid.services.view_state_store import ViewStateStore

TABLE_ID = "characters"


@pytest.fixture
def settings():
    """Create a settings object for testing."""
    return Settings(
        view_state_backend="memory",
        view_state_ttl_days=7,
        persist_extended_state=True,
        pinned_trailing_column="actions",
        default_page_size=10,
    )


@pytest.fixture
def columns():
    """Columns of the characters table."""
    return [
        ColumnDescriptor(id="select", size=20, sortable=False, hideable=False, reorderable=False),
        ColumnDescriptor(id="id", size=10, hideable=False),
        ColumnDescriptor(id="name", size=100),
        ColumnDescriptor(id="species", size=30),
        ColumnDescriptor(id="actions", size=20, sortable=False, hideable=False, reorderable=False),
    ]


@pytest.fixture
def storage():
    """Create an in-memory storage backend."""
    return MemoryViewStateStorage()


@pytest.fixture
def store(storage):
    """Create a view state store over the in-memory backend."""
    return ViewStateStore(storage, ttl_days=7)


def make_page(rows: int, count: int = None, pages: int = 1, offset: int = 0) -> Dict[str, Any]:
    """Build a remote collection response with ``rows`` rows."""
    return {
        "results": [{"id": offset + i, "name": f"Character {offset + i}"} for i in range(rows)],
        "info": {"count": rows if count is None else count, "pages": pages},
    }


async def settle():
    """Let scheduled fetch tasks run up to their next suspension point."""
    for _ in range(5):
        await asyncio.sleep(0)


class ControlledFetcher:
    """Remote collection fake whose responses are released by the test."""

    def __init__(self):
        self.calls: List[Dict[str, Any]] = []
        self.futures: List[asyncio.Future] = []

    async def __call__(self, params: Dict[str, Any]) -> Dict[str, Any]:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(params)
        self.futures.append(future)
        return await future

    def resolve(self, index: int, payload: Dict[str, Any]):
        self.futures[index].set_result(payload)

    def fail(self, index: int, error: Exception):
        self.futures[index].set_exception(error)


@pytest.fixture
def fetcher():
    """Create a controllable fetcher."""
    return ControlledFetcher()
