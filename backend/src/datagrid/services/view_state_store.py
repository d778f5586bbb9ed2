"""Keyed repository for persisted view state.

Records are plain dictionaries using the persisted camelCase layout
(``columnOrder``, ``columnVisibility``, ``pagination``, ``rowSelection``,
``tableState``). Writes merge into the existing record. The store keeps a
session copy of every record it touched, so a failing storage backend only
costs durability: reads keep returning the last written values.
"""

import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Set

from datagrid.core.exceptions import PersistenceError
from datagrid.models.view_state_record import ViewStateRecord
from datagrid.services.storage.base import ViewStateStorage

logger = logging.getLogger(__name__)

# Nested blobs merged key by key instead of replaced
MERGED_BLOBS = ("tableState",)


class ViewStateStore:
    """Persisted view state, keyed by table identity."""

    def __init__(self, storage: ViewStateStorage, ttl_days: Optional[int] = None):
        self.storage = storage
        self.ttl = timedelta(days=ttl_days) if ttl_days else None
        self._session: Dict[str, ViewStateRecord] = {}
        self.degraded: Set[str] = set()

    def _is_expired(self, record: ViewStateRecord) -> bool:
        if self.ttl is None:
            return False
        updated_at = record.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)
        return datetime.now(timezone.utc) - updated_at > self.ttl

    def _load(self, table_id: str) -> Optional[ViewStateRecord]:
        if table_id in self._session:
            return self._session[table_id]

        try:
            record = self.storage.get_record(table_id)
        except PersistenceError as e:
            logger.warning(f"Could not read view state {table_id}, using defaults: {e}")
            self.degraded.add(table_id)
            return None

        if record is None:
            return None
        if self._is_expired(record):
            logger.info(f"View state {table_id} expired, ignoring stored record")
            return None

        self._session[table_id] = record
        return record

    def get_record(self, table_id: str) -> Optional[ViewStateRecord]:
        """Get the full record of a table, including its timestamps."""
        record = self._load(table_id)
        return record.model_copy(deep=True) if record else None

    def get(self, table_id: str) -> Optional[Dict[str, Any]]:
        """Get the persisted record of a table, or None on first run."""
        record = self._load(table_id)
        return copy.deepcopy(record.data) if record else None

    def set(self, table_id: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        """Merge ``patch`` into the record of a table and return the result."""
        current = self._load(table_id) or ViewStateRecord(id=table_id)

        data = copy.deepcopy(current.data)
        for key, value in copy.deepcopy(patch).items():
            if key in MERGED_BLOBS and isinstance(value, dict):
                data[key] = {**data.get(key, {}), **value}
            else:
                data[key] = value

        record = current.model_copy(
            update={"data": data, "updated_at": datetime.now(timezone.utc)}
        )
        self._session[table_id] = record

        try:
            self.storage.save_record(record)
            self.degraded.discard(table_id)
        except PersistenceError as e:
            logger.warning(f"Could not persist view state {table_id}, keeping it for this session: {e}")
            self.degraded.add(table_id)

        return copy.deepcopy(data)

    def list_records(self) -> List[ViewStateRecord]:
        """List stored records, with session copies taking precedence."""
        try:
            stored = {r.id: r for r in self.storage.list_records() if not self._is_expired(r)}
        except PersistenceError as e:
            logger.warning(f"Could not list view states: {e}")
            stored = {}

        stored.update(self._session)
        return sorted(stored.values(), key=lambda r: r.updated_at, reverse=True)
