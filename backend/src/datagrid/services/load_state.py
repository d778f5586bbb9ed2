"""Presentation state derivation."""

from datagrid.models.query_core import (
    FetchStatus,
    LoadState,
    Presentation,
    QueryResult,
)


def derive_presentation(
    status: FetchStatus, row_count: int, is_fetching: bool = False
) -> Presentation:
    """Derive the presentation state from the latest fetch status and row count.

    Rows on screen always win: a background refetch only sets the
    ``revalidating`` overlay and never takes a populated grid back to loading.
    An empty grid is a settled, successful fetch that returned no rows.
    """
    if row_count > 0:
        return Presentation(state=LoadState.POPULATED, revalidating=is_fetching)
    if status == FetchStatus.PENDING:
        return Presentation(state=LoadState.LOADING)
    if status == FetchStatus.ERROR:
        return Presentation(state=LoadState.ERRORED, revalidating=is_fetching)
    return Presentation(state=LoadState.EMPTY, revalidating=is_fetching)


def presentation_for(result: QueryResult) -> Presentation:
    return derive_presentation(result.status, result.row_count, result.is_fetching)
