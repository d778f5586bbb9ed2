"""Tests for the presentation state derivation."""

import pytest

from datagrid.models.query_core import (
    FetchResult,
    FetchStatus,
    LoadState,
    QueryResult,
)
from datagrid.services.load_state import derive_presentation, presentation_for


@pytest.mark.parametrize(
    "status, rows, fetching, expected",
    [
        (FetchStatus.PENDING, 0, True, LoadState.LOADING),
        (FetchStatus.SUCCESS, 10, False, LoadState.POPULATED),
        (FetchStatus.PENDING, 10, True, LoadState.POPULATED),
        (FetchStatus.ERROR, 10, False, LoadState.POPULATED),
        (FetchStatus.SUCCESS, 0, False, LoadState.EMPTY),
        (FetchStatus.ERROR, 0, False, LoadState.ERRORED),
    ],
)
def test_derive_presentation(status, rows, fetching, expected):
    """Test each presentation state."""
    assert derive_presentation(status, rows, fetching).state == expected


def test_background_refetch_overlays_populated():
    """Test that revalidation never regresses a populated grid to loading."""
    presentation = derive_presentation(FetchStatus.SUCCESS, 5, is_fetching=True)

    assert presentation.state == LoadState.POPULATED
    assert presentation.revalidating is True


def test_loading_is_not_revalidating():
    """Test that the initial load is not reported as a revalidation."""
    presentation = derive_presentation(FetchStatus.PENDING, 0, is_fetching=True)

    assert presentation.revalidating is False


def test_presentation_for_query_result():
    """Test deriving from a coordinator result."""
    result = QueryResult(
        data=FetchResult(rows=[{"id": 1}], total_count=1, page_count=1),
        status=FetchStatus.SUCCESS,
    )

    assert presentation_for(result).state == LoadState.POPULATED
    assert presentation_for(QueryResult()).state == LoadState.LOADING
