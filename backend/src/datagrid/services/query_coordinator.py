"""Query coordinator.

Maps each table's query descriptor onto fetches against the remote
collection. There is one current request per table; completions are
committed only if they still belong to it, so a slow response for an old
query can never overwrite the result of a newer one.
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set

from datagrid.core.exceptions import FetchError
from datagrid.models.query_core import (
    FetchResult,
    FetchStatus,
    QueryDescriptor,
    QueryResult,
)
from datagrid.schemas.collection_api import CollectionPage

logger = logging.getLogger(__name__)

CollectionFetcher = Callable[[Dict[str, Any]], Awaitable[Any]]
ResultListener = Callable[[str, QueryResult], None]

DEFAULT_CACHE_SIZE = 20


@dataclass
class _TableQuery:
    """Query bookkeeping of one table identity."""

    descriptor: Optional[QueryDescriptor] = None
    generation: int = 0
    task: Optional[asyncio.Task] = None
    tasks: Set[asyncio.Task] = field(default_factory=set)
    result: QueryResult = field(default_factory=QueryResult)
    cache: "OrderedDict[str, FetchResult]" = field(default_factory=OrderedDict)


class QueryCoordinator:
    """Issues fetches per table and discards superseded completions."""

    def __init__(self, fetcher: CollectionFetcher, cache_size: int = DEFAULT_CACHE_SIZE):
        self.fetcher = fetcher
        self.cache_size = cache_size
        self._tables: Dict[str, _TableQuery] = {}
        self._listeners: List[ResultListener] = []
        self.fetch_count = 0

    def _table(self, table_id: str) -> _TableQuery:
        if table_id not in self._tables:
            self._tables[table_id] = _TableQuery()
        return self._tables[table_id]

    def subscribe(self, listener: ResultListener) -> Callable[[], None]:
        """Register a listener called whenever a table's current result changes."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, table_id: str, result: QueryResult):
        for listener in list(self._listeners):
            try:
                listener(table_id, result.model_copy(deep=True))
            except Exception as e:
                logger.error(f"Query result listener failed for {table_id}: {e}")

    def current_result(self, table_id: str) -> QueryResult:
        return self._table(table_id).result.model_copy(deep=True)

    def request(self, table_id: str, descriptor: QueryDescriptor) -> QueryResult:
        """Make ``descriptor`` the current query of a table.

        A fetch is issued only when the descriptor differs structurally from
        the current one. Previously fetched descriptors show their cached
        page right away while it is fetched again. Must be called from a
        running event loop; otherwise a ``RuntimeError`` is raised and the
        table is left untouched.
        """
        table = self._table(table_id)
        if table.descriptor == descriptor:
            logger.debug(f"[{table_id}] Query unchanged, not fetching again")
            return self.current_result(table_id)

        loop = asyncio.get_running_loop()

        table.descriptor = descriptor
        cached = table.cache.get(descriptor.key)
        if cached is not None:
            table.cache.move_to_end(descriptor.key)
            table.result = QueryResult(
                descriptor=descriptor,
                data=cached,
                status=FetchStatus.SUCCESS,
                is_fetching=True,
            )
        else:
            table.result = QueryResult(
                descriptor=descriptor, status=FetchStatus.PENDING, is_fetching=True
            )

        self._issue(loop, table_id, table, descriptor)
        self._notify(table_id, table.result)
        return self.current_result(table_id)

    def refetch(self, table_id: str) -> QueryResult:
        """Fetch the current query again in the background, keeping its data."""
        table = self._table(table_id)
        if table.descriptor is None:
            return self.current_result(table_id)

        loop = asyncio.get_running_loop()
        table.result = table.result.model_copy(update={"is_fetching": True})
        self._issue(loop, table_id, table, table.descriptor)
        self._notify(table_id, table.result)
        return self.current_result(table_id)

    async def wait(self, table_id: str) -> QueryResult:
        """Wait until the table has no fetch in flight."""
        table = self._table(table_id)
        while table.task is not None and not table.task.done():
            await asyncio.wait({table.task})
        return self.current_result(table_id)

    def forget(self, table_id: str):
        """Drop the query state and cached pages of a table."""
        table = self._tables.pop(table_id, None)
        if table is None:
            return
        for task in list(table.tasks):
            task.cancel()
        logger.info(f"[{table_id}] Forgot query state ({len(table.cache)} cached pages)")

    def _issue(
        self,
        loop: asyncio.AbstractEventLoop,
        table_id: str,
        table: _TableQuery,
        descriptor: QueryDescriptor,
    ):
        # Bumping the generation marks any fetch still in flight as stale
        table.generation += 1
        generation = table.generation
        self.fetch_count += 1
        logger.info(f"[{table_id}] Fetching page {descriptor.page} (generation {generation})")
        task = loop.create_task(self._run(table_id, table, descriptor, generation))
        table.tasks.add(task)
        task.add_done_callback(table.tasks.discard)
        table.task = task

    def _remember(self, table: _TableQuery, descriptor: QueryDescriptor, data: FetchResult):
        table.cache[descriptor.key] = data
        table.cache.move_to_end(descriptor.key)
        while len(table.cache) > self.cache_size:
            table.cache.popitem(last=False)

    async def _fetch(self, descriptor: QueryDescriptor) -> FetchResult:
        params = descriptor.to_params()
        try:
            payload = await self.fetcher(params)
            return CollectionPage.model_validate(payload).to_fetch_result()
        except Exception as e:
            raise FetchError(f"{type(e).__name__}: {e}", params) from e

    async def _run(
        self, table_id: str, table: _TableQuery, descriptor: QueryDescriptor, generation: int
    ):
        data = None
        error = None
        try:
            data = await self._fetch(descriptor)
        except FetchError as e:
            logger.warning(f"[{table_id}] Fetch failed for page {descriptor.page}: {e}")
            error = str(e)

        if self._tables.get(table_id) is not table:
            logger.debug(f"[{table_id}] Discarding result of a forgotten table")
            return

        if data is not None:
            self._remember(table, descriptor, data)

        if generation != table.generation or descriptor != table.descriptor:
            logger.debug(f"[{table_id}] Discarding stale result of generation {generation}")
            return

        if error is not None:
            table.result = QueryResult(
                descriptor=descriptor,
                data=table.result.data,
                status=FetchStatus.ERROR,
                error=error,
            )
        else:
            table.result = QueryResult(
                descriptor=descriptor, data=data, status=FetchStatus.SUCCESS
            )
        self._notify(table_id, table.result)
