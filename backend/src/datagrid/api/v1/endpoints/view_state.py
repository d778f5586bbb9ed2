"""API endpoints for reading persisted view state.

The endpoints are read-only: view state is only ever written through a
grid's view state controller.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status

from datagrid.core.dependencies import get_view_state_store
from datagrid.schemas.view_state_api import ViewStateListResponse, ViewStateResponse
from datagrid.services.view_state_store import ViewStateStore

# Set up logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter()


@router.get(
    "/",
    response_model=ViewStateListResponse,
    status_code=status.HTTP_200_OK,
    summary="List all view states",
    description="List the persisted view state of every table.",
)
async def list_view_states(
    store: ViewStateStore = Depends(get_view_state_store),
) -> ViewStateListResponse:
    """List all view states."""
    records = store.list_records()

    return ViewStateListResponse(
        items=[
            ViewStateResponse(
                id=record.id,
                data=record.data,
                created_at=record.created_at,
                updated_at=record.updated_at,
            )
            for record in records
        ]
    )


@router.get(
    "/{table_id}",
    response_model=ViewStateResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a view state by table ID",
    description="Get the persisted view state of one table.",
)
async def get_view_state(
    table_id: str = Path(..., description="The table identity of the view state"),
    store: ViewStateStore = Depends(get_view_state_store),
) -> ViewStateResponse:
    """Get a view state by table ID."""
    record = store.get_record(table_id)

    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"View state for table {table_id} not found",
        )

    return ViewStateResponse(
        id=record.id,
        data=record.data,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )
