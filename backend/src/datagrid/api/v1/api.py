"""API for the data grid."""

from fastapi import APIRouter

from datagrid.api.v1.endpoints import view_state

api_router = APIRouter()
api_router.include_router(
    view_state.router, prefix="/view-state", tags=["view-state"]
)
