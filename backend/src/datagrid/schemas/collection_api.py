"""Schemas for the remote collection responses."""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from datagrid.models.query_core import FetchResult


class PageInfo(BaseModel):
    """Paging information returned alongside the rows."""

    model_config = ConfigDict(extra="allow")

    count: int = Field(ge=0)
    pages: int = Field(ge=0)
    next: Optional[str] = None
    prev: Optional[str] = None


class CollectionPage(BaseModel):
    """One page of a remote collection: ``{results, info: {count, pages}}``."""

    model_config = ConfigDict(extra="allow")

    results: List[Any] = []
    info: PageInfo

    def to_fetch_result(self) -> FetchResult:
        return FetchResult(
            rows=list(self.results),
            total_count=self.info.count,
            page_count=self.info.pages,
        )
