from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from kanban_api.core.lifecycle import State


class WorkItemBase(BaseModel):
    """Fields shared by the create and update payloads."""
    title: str = Field(..., description="Title (required, non-empty)")
    assigned_to_id: Optional[int] = Field(None, description="Id of the assigned user")
    description: Optional[str] = Field(None, description="Free text description")
    tags: List[str] = Field(default_factory=list, description="Tag names; unknown names are created")

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("title must not be empty")
        return v


class WorkItemCreate(WorkItemBase):
    """Create work item payload. New items always start in state New."""


class WorkItemChanges(WorkItemBase):
    """Full replacement of a work item's mutable fields, including its state."""
    state: State = Field(..., description="Target state")


class WorkItemUpdate(WorkItemChanges):
    """Update work item payload."""
    id: int = Field(..., description="Work item id")


class WorkItemRead(BaseModel):
    """Lightweight work item view used by list queries."""
    id: int = Field(..., description="Work item id")
    title: str = Field(..., description="Title")
    assigned_to_name: str = Field("", description="Assignee name, empty when unassigned")
    tags: List[str] = Field(default_factory=list, description="Tag names")
    state: State = Field(..., description="Current state")


class WorkItemDetails(WorkItemRead):
    """Detailed work item view returned by find."""
    description: str = Field("", description="Description, empty when unset")
    created: datetime = Field(..., description="Creation timestamp (UTC)")
    state_updated: datetime = Field(..., description="Last state change timestamp (UTC)")
