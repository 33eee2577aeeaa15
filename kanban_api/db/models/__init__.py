"""
ORM models for the tracker: users, tags, work items and the work item/tag
association.

Importing this package ensures model classes are registered with the Base
metadata for Alembic and runtime usage.
"""

from .users import User  # noqa: F401
from .tags import Tag  # noqa: F401
from .work_items import WorkItem, work_item_tags  # noqa: F401
