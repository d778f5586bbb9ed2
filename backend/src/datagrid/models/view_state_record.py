"""Persisted view state record, one per table identity."""

from datetime import datetime, timezone
from typing import Any, Dict

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ViewStateRecord(BaseModel):
    """Model for storing the persisted part of a grid's view state."""

    id: str
    data: Dict[str, Any] = Field(default_factory=dict)  # camelCase record layout
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    class Config:
        """Configuration for the ViewStateRecord model."""

        from_attributes = True
