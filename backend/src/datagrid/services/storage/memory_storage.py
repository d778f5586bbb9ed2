"""In-memory view state storage, used for tests and session-only setups."""

import logging
from typing import Dict, List, Optional

from datagrid.models.view_state_record import ViewStateRecord
from datagrid.services.storage.base import ViewStateStorage

logger = logging.getLogger(__name__)


class MemoryViewStateStorage(ViewStateStorage):
    """Keeps records in a dictionary for the lifetime of the process."""

    def __init__(self):
        self._records: Dict[str, ViewStateRecord] = {}

    def get_record(self, table_id: str) -> Optional[ViewStateRecord]:
        record = self._records.get(table_id)
        return record.model_copy(deep=True) if record else None

    def save_record(self, record: ViewStateRecord) -> ViewStateRecord:
        self._records[record.id] = record.model_copy(deep=True)
        logger.debug(f"Stored view state {record.id} in memory")
        return record

    def list_records(self) -> List[ViewStateRecord]:
        return sorted(
            (r.model_copy(deep=True) for r in self._records.values()),
            key=lambda r: r.updated_at,
            reverse=True,
        )
