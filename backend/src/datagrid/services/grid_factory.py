"""Grid factory."""

import logging
from typing import List, Optional

from datagrid.core.config import Settings
from datagrid.models.view_state import ColumnDescriptor
from datagrid.services.collection_client import CollectionClient
from datagrid.services.data_grid import DataGrid
from datagrid.services.query_coordinator import CollectionFetcher, QueryCoordinator
from datagrid.services.view_state_store import ViewStateStore

logger = logging.getLogger(__name__)

CHARACTERS_TABLE_ID = "rick-and-morty-characters-table"

CHARACTER_COLUMNS: List[ColumnDescriptor] = [
    ColumnDescriptor(id="select", size=20, sortable=False, hideable=False, reorderable=False),
    # Draggable here, unlike the legacy UI, so that columns can be dropped onto it
    ColumnDescriptor(id="id", size=10, hideable=False),
    ColumnDescriptor(id="name", size=100),
    ColumnDescriptor(id="species", size=30),
    ColumnDescriptor(id="gender", size=30),
    ColumnDescriptor(id="status", size=100),
    ColumnDescriptor(id="actions", size=20, sortable=False, hideable=False, reorderable=False),
]


class GridFactory:
    """Builds data grids that share one store and one query coordinator."""

    def __init__(
        self,
        store: ViewStateStore,
        settings: Settings,
        fetcher: Optional[CollectionFetcher] = None,
    ):
        self.store = store
        self.settings = settings
        self.coordinator = QueryCoordinator(
            fetcher or CollectionClient(settings), cache_size=settings.query_cache_size
        )

    def create_grid(self, table_id: str, columns: List[ColumnDescriptor]) -> DataGrid:
        logger.info(f"Creating grid {table_id} with {len(columns)} columns")
        return DataGrid(table_id, columns, self.store, self.coordinator, self.settings)

    def create_characters_grid(self) -> DataGrid:
        return self.create_grid(CHARACTERS_TABLE_ID, CHARACTER_COLUMNS)
