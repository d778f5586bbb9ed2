"""View state models for a single data grid."""

from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field


class ColumnDescriptor(BaseModel):
    """Static description of one grid column, supplied by the caller."""

    model_config = ConfigDict(frozen=True)

    id: str
    reorderable: bool = True
    hideable: bool = True
    sortable: bool = True
    size: float = 150


class PaginationState(BaseModel):
    """Position of the grid inside the remote collection."""

    model_config = ConfigDict(populate_by_name=True)

    page_index: int = Field(default=0, ge=0, alias="pageIndex")
    page_size: int = Field(default=10, gt=0, alias="pageSize")


class ColumnSort(BaseModel):
    """One sort criterion; list position encodes priority."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    column_id: str = Field(alias="id")
    desc: bool = False

    @property
    def direction(self) -> str:
        return "desc" if self.desc else "asc"


class ColumnFilter(BaseModel):
    """Filter value applied to one column. The value is filter specific."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    column_id: str = Field(alias="id")
    value: Any = None


class ViewState(BaseModel):
    """The full mutable state of one grid."""

    model_config = ConfigDict(populate_by_name=True)

    column_order: List[str] = Field(default_factory=list, alias="columnOrder")
    column_visibility: Dict[str, bool] = Field(
        default_factory=dict, alias="columnVisibility"
    )
    pagination: PaginationState = Field(default_factory=PaginationState)
    sorting: List[ColumnSort] = Field(default_factory=list)
    column_filters: List[ColumnFilter] = Field(
        default_factory=list, alias="columnFilters"
    )
    row_selection: Set[str] = Field(default_factory=set, alias="rowSelection")

    def is_visible(self, column_id: str) -> bool:
        """Columns absent from the visibility map are visible."""
        return self.column_visibility.get(column_id, True)

    def visible_columns(self) -> List[str]:
        return [c for c in self.column_order if self.is_visible(c)]


class ReorderIntent(BaseModel):
    """Completed drag gesture reported by the input layer."""

    model_config = ConfigDict(populate_by_name=True)

    active_column_id: Optional[str] = Field(default=None, alias="activeColumnId")
    over_column_id: Optional[str] = Field(default=None, alias="overColumnId")
