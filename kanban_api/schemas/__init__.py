"""
Public Pydantic schemas used by repositories, FastAPI routes, and tests.

Request payloads (``*Create``/``*Update``) are plain data-transfer objects;
``*Read``/``WorkItemDetails`` are the projected views handed back to callers.
"""

from .common import CreatedResponse, ErrorResponse, MessageResponse  # noqa: F401
from .tags import TagCreate, TagRead, TagUpdate  # noqa: F401
from .users import UserCreate, UserRead, UserUpdate  # noqa: F401
from .work_items import (  # noqa: F401
    WorkItemChanges,
    WorkItemCreate,
    WorkItemDetails,
    WorkItemRead,
    WorkItemUpdate,
)
