from __future__ import annotations

from pydantic import BaseModel, Field


class TagCreate(BaseModel):
    """Create tag payload."""
    name: str = Field(..., min_length=1, description="Tag name (unique)")


class TagUpdate(TagCreate):
    """Rename tag payload."""
    id: int = Field(..., description="Tag id")


class TagRead(BaseModel):
    """Tag projected view."""
    id: int = Field(..., description="Tag id")
    name: str = Field(..., description="Tag name")

    class Config:
        from_attributes = True
