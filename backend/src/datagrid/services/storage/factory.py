"""Storage factory."""

import logging

from datagrid.core.config import Settings
from datagrid.core.exceptions import PersistenceError
from datagrid.services.storage.base import ViewStateStorage
from datagrid.services.storage.memory_storage import MemoryViewStateStorage
from datagrid.services.storage.sqlite_storage import SQLiteViewStateStorage

logger = logging.getLogger(__name__)


class StorageFactory:
    """The factory for the view state storage backends."""

    @staticmethod
    def create_storage(settings: Settings) -> ViewStateStorage:
        """Create a storage backend, falling back to memory when unavailable."""
        backend = settings.view_state_backend
        logger.info(f"Creating view state storage of type: {backend}")

        if backend == "memory":
            return MemoryViewStateStorage()
        elif backend == "sqlite":
            try:
                return SQLiteViewStateStorage(settings.view_state_db_uri)
            except PersistenceError as e:
                logger.warning(f"SQLite storage unavailable, view state is session-only: {e}")
                return MemoryViewStateStorage()
        else:
            logger.warning(f"No storage found for type: {backend}, using memory")
            return MemoryViewStateStorage()
