"""Exceptions raised inside the grid engine.

None of these escape to presentation code: each one is absorbed by the
component that raised it (see the services that catch them).
"""


class DataGridError(Exception):
    """Base class for grid engine errors."""


class PersistenceError(DataGridError):
    """The view state storage backend could not be read or written."""

    def __init__(self, message: str, table_id: str = None):
        super().__init__(message)
        self.table_id = table_id


class FetchError(DataGridError):
    """The remote collection failed to return a usable page."""

    def __init__(self, message: str, params: dict = None):
        super().__init__(message)
        self.params = params or {}
