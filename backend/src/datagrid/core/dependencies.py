"""Dependencies for the application using FastAPI app state for singletons."""

import logging

from fastapi import Depends, Request

from datagrid.core.config import Settings, get_settings
from datagrid.services.view_state_store import ViewStateStore

logger = logging.getLogger(__name__)


def get_view_state_store(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> ViewStateStore:
    """Get the view state store from application state."""
    if not hasattr(request.app.state, "view_state_store"):
        raise ValueError("View state store not initialized in application state")

    return request.app.state.view_state_store
