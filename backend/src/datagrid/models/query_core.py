"""Query models shared by the coordinator and the load state derivation."""

import json
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from datagrid.models.view_state import ColumnFilter, ColumnSort, ViewState


class QueryDescriptor(BaseModel):
    """Projection of a view state that determines the remote result."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    page: int = Field(ge=0)
    page_size: int = Field(gt=0, alias="pageSize")
    sorting: List[ColumnSort] = Field(default_factory=list)
    column_filters: List[ColumnFilter] = Field(
        default_factory=list, alias="columnFilters"
    )

    @classmethod
    def from_view_state(cls, view_state: ViewState) -> "QueryDescriptor":
        return cls(
            page=view_state.pagination.page_index,
            page_size=view_state.pagination.page_size,
            sorting=list(view_state.sorting),
            column_filters=list(view_state.column_filters),
        )

    def to_params(self) -> Dict[str, Any]:
        """Payload handed to the remote collection fetcher."""
        return self.model_dump(mode="json", by_alias=True)

    @property
    def key(self) -> str:
        """Stable structural key; equal descriptors share the same key."""
        return json.dumps(self.to_params(), sort_keys=True, default=str)


class FetchStatus(str, Enum):
    """Status of the latest fetch for the current query."""

    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"


class FetchResult(BaseModel):
    """One page of the remote collection."""

    rows: List[Any] = Field(default_factory=list)
    total_count: int = Field(default=0, ge=0)
    page_count: int = Field(default=0, ge=0)


class QueryResult(BaseModel):
    """The current result of a table, as seen by presentation code."""

    descriptor: Optional[QueryDescriptor] = None
    data: Optional[FetchResult] = None
    status: FetchStatus = FetchStatus.PENDING
    error: Optional[str] = None
    is_fetching: bool = False

    @property
    def row_count(self) -> int:
        return len(self.data.rows) if self.data else 0


class LoadState(str, Enum):
    """Presentation state derived from fetch status and row count."""

    LOADING = "loading"
    POPULATED = "populated"
    EMPTY = "empty"
    ERRORED = "errored"


class Presentation(BaseModel):
    """Load state plus the background revalidation overlay."""

    state: LoadState
    revalidating: bool = False
