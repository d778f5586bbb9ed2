"""View state storage backed by SQLite."""

import json
import logging
import os
import sqlite3
from datetime import datetime
from typing import List, Optional

from datagrid.core.exceptions import PersistenceError
from datagrid.models.view_state_record import ViewStateRecord
from datagrid.services.storage.base import ViewStateStorage

logger = logging.getLogger(__name__)


class SQLiteViewStateStorage(ViewStateStorage):
    """Service for persisting view state records using SQLite."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.init_db()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(self.db_path)

    def init_db(self):
        """Initialize the SQLite database."""
        dir_path = os.path.dirname(self.db_path)
        try:
            if dir_path:
                os.makedirs(dir_path, exist_ok=True)

            conn = self._connect()
            try:
                cursor = conn.cursor()
                cursor.execute('''
                CREATE TABLE IF NOT EXISTS view_states (
                    id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                ''')
                conn.commit()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as e:
            logger.error(f"Cannot initialize view state database at {self.db_path}: {e}")
            raise PersistenceError(f"Cannot initialize {self.db_path}: {e}") from e

        logger.info(f"Initialized SQLite view state database at {self.db_path}")

    @staticmethod
    def _row_to_record(row) -> ViewStateRecord:
        return ViewStateRecord(
            id=row[0],
            data=json.loads(row[1]),
            created_at=datetime.fromisoformat(row[2]),
            updated_at=datetime.fromisoformat(row[3]),
        )

    def save_record(self, record: ViewStateRecord) -> ViewStateRecord:
        """Save a view state record to the SQLite database."""
        try:
            data_json = json.dumps(record.data, default=str)
            conn = self._connect()
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise PersistenceError(f"Cannot save view state {record.id}: {e}", record.id) from e

        try:
            cursor = conn.cursor()
            cursor.execute("SELECT id FROM view_states WHERE id = ?", (record.id,))
            exists = cursor.fetchone() is not None

            if exists:
                cursor.execute(
                    "UPDATE view_states SET data = ?, updated_at = ? WHERE id = ?",
                    (data_json, record.updated_at.isoformat(), record.id),
                )
            else:
                cursor.execute(
                    "INSERT INTO view_states (id, data, created_at, updated_at) VALUES (?, ?, ?, ?)",
                    (
                        record.id,
                        data_json,
                        record.created_at.isoformat(),
                        record.updated_at.isoformat(),
                    ),
                )
            conn.commit()
            logger.debug(f"Saved view state {record.id} to database")
            return record
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Error saving view state {record.id}: {e}")
            raise PersistenceError(f"Cannot save view state {record.id}: {e}", record.id) from e
        finally:
            conn.close()

    def get_record(self, table_id: str) -> Optional[ViewStateRecord]:
        """Get a view state record by table identity."""
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot load view state {table_id}: {e}", table_id) from e

        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, data, created_at, updated_at FROM view_states WHERE id = ?",
                (table_id,),
            )
            row = cursor.fetchone()
            if not row:
                return None
            return self._row_to_record(row)
        except (sqlite3.Error, ValueError) as e:
            logger.error(f"Error loading view state {table_id}: {e}")
            raise PersistenceError(f"Cannot load view state {table_id}: {e}", table_id) from e
        finally:
            conn.close()

    def list_records(self) -> List[ViewStateRecord]:
        """List all view state records."""
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot list view states: {e}") from e

        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT id, data, created_at, updated_at FROM view_states ORDER BY updated_at DESC"
            )
            records = [self._row_to_record(row) for row in cursor.fetchall()]
            logger.info(f"Listed {len(records)} view states from database")
            return records
        except (sqlite3.Error, ValueError) as e:
            logger.error(f"Error listing view states: {e}")
            raise PersistenceError(f"Cannot list view states: {e}") from e
        finally:
            conn.close()
