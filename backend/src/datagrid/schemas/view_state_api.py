"""API schemas for view state and grid snapshots."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel

from datagrid.models.query_core import Presentation
from datagrid.models.view_state import ColumnFilter, ColumnSort, PaginationState


class ViewStateResponse(BaseModel):
    """Schema for a persisted view state record."""

    id: str
    data: Dict[str, Any]
    created_at: datetime
    updated_at: datetime


class ViewStateListResponse(BaseModel):
    """Schema for listing view state records."""

    items: List[ViewStateResponse]


class GridSnapshot(BaseModel):
    """Read-only render state handed to presentation code."""

    table_id: str
    rows: List[Any]
    page_count: int
    total_count: int
    presentation: Presentation
    error: Optional[str] = None
    column_order: List[str]
    column_visibility: Dict[str, bool]
    pagination: PaginationState
    sorting: List[ColumnSort]
    column_filters: List[ColumnFilter]
    row_selection: Set[str]
