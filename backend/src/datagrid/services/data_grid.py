"""Data grid service wiring view state, queries and reordering for one table."""

import logging
from typing import Callable, FrozenSet, List

from datagrid.core.config import Settings
from datagrid.models.query_core import QueryResult
from datagrid.models.view_state import ColumnDescriptor, ReorderIntent, ViewState
from datagrid.schemas.view_state_api import GridSnapshot
from datagrid.services.load_state import presentation_for
from datagrid.services.query_coordinator import QueryCoordinator
from datagrid.services.reorder_engine import ReorderEngine
from datagrid.services.view_state_controller import ViewStateController
from datagrid.services.view_state_store import ViewStateStore

logger = logging.getLogger(__name__)

# View state fields that change the remote result
QUERY_FIELDS = frozenset({"pagination", "sorting", "column_filters"})


class DataGrid:
    """Stateful remote data grid for one table identity.

    The mutator handles (``set_column_order``, ``set_pagination``...) are the
    controller's operations; pagination, sorting and filter changes issue a
    new query through the coordinator.
    """

    def __init__(
        self,
        table_id: str,
        columns: List[ColumnDescriptor],
        store: ViewStateStore,
        coordinator: QueryCoordinator,
        settings: Settings,
    ):
        self.table_id = table_id
        self.coordinator = coordinator
        self.controller = ViewStateController(table_id, columns, store, settings)
        self.reorder_engine = ReorderEngine(columns)
        self._listeners: List[Callable[[GridSnapshot], None]] = []
        self._unsubscribe = [
            self.controller.subscribe(self._on_view_state_change),
            coordinator.subscribe(self._on_result_change),
        ]

        # Mutator handles
        self.set_column_order = self.controller.set_column_order
        self.set_column_visibility = self.controller.set_column_visibility
        self.set_pagination = self.controller.set_pagination
        self.set_sorting = self.controller.set_sorting
        self.set_column_filters = self.controller.set_column_filters
        self.set_row_selection = self.controller.set_row_selection
        self.set_page_index = self.controller.set_page_index
        self.set_page_size = self.controller.set_page_size
        self.set_column_filter = self.controller.set_column_filter
        self.reset_column_filters = self.controller.reset_column_filters
        self.toggle_sorting = self.controller.toggle_sorting
        self.toggle_column_visibility = self.controller.toggle_column_visibility

    def load(self) -> QueryResult:
        """Issue the query for the hydrated view state."""
        return self.coordinator.request(self.table_id, self.controller.query_descriptor())

    def refetch(self) -> QueryResult:
        return self.coordinator.refetch(self.table_id)

    async def wait(self) -> GridSnapshot:
        await self.coordinator.wait(self.table_id)
        return self.snapshot()

    def close(self):
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        self._listeners = []
        self.coordinator.forget(self.table_id)

    def handle_drag_end(self, intent: ReorderIntent) -> List[str]:
        """Apply a completed column drag to the column order."""
        current = self.controller.state.column_order
        new_order = self.reorder_engine.compute(
            intent.active_column_id, intent.over_column_id, current
        )
        if new_order == current:
            return current
        return self.controller.set_column_order(new_order)

    def subscribe(self, listener: Callable[[GridSnapshot], None]) -> Callable[[], None]:
        """Register a listener receiving a fresh snapshot after every change."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def snapshot(self) -> GridSnapshot:
        state = self.controller.state
        result = self.coordinator.current_result(self.table_id)
        data = result.data

        return GridSnapshot(
            table_id=self.table_id,
            rows=data.rows if data else [],
            page_count=data.page_count if data else 1,
            total_count=data.total_count if data else 0,
            presentation=presentation_for(result),
            error=result.error,
            column_order=state.column_order,
            column_visibility=state.column_visibility,
            pagination=state.pagination,
            sorting=state.sorting,
            column_filters=state.column_filters,
            row_selection=state.row_selection,
        )

    def _emit(self):
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Grid listener failed for {self.table_id}: {e}")

    def _on_view_state_change(self, table_id: str, changed: FrozenSet[str], state: ViewState):
        if changed & QUERY_FIELDS:
            self.coordinator.request(self.table_id, self.controller.query_descriptor())
        self._emit()

    def _on_result_change(self, table_id: str, result: QueryResult):
        if table_id == self.table_id:
            self._emit()
