from __future__ import annotations

from pydantic import BaseModel, Field


class UserCreate(BaseModel):
    """Create user payload."""
    name: str = Field(..., min_length=1, description="Display name")
    email: str = Field(..., min_length=1, description="Email address (unique)")


class UserUpdate(UserCreate):
    """Update user payload; fields that differ from the stored row are written."""
    id: int = Field(..., description="User id")


class UserRead(BaseModel):
    """User projected view."""
    id: int = Field(..., description="User id")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Email address")

    class Config:
        from_attributes = True
