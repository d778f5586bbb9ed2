"""Abstract base class for view state storage backends."""

from abc import ABC, abstractmethod
from typing import List, Optional

from datagrid.models.view_state_record import ViewStateRecord


class ViewStateStorage(ABC):
    """Abstract base class for view state storage backends.

    Implementations raise ``PersistenceError`` when the underlying medium
    cannot be read or written.
    """

    @abstractmethod
    def get_record(self, table_id: str) -> Optional[ViewStateRecord]:
        """Get the record stored for a table identity, if any."""
        pass

    @abstractmethod
    def save_record(self, record: ViewStateRecord) -> ViewStateRecord:
        """Insert or replace the record for ``record.id``."""
        pass

    @abstractmethod
    def list_records(self) -> List[ViewStateRecord]:
        """List every stored record, most recently updated first."""
        pass
