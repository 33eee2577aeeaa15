"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries and the tracker's domain rules
(uniqueness, protected associations, the work item deletion policy). Each
repository works on the AsyncSession it is given; the caller scopes one
session to one logical operation (see kanban_api.db.session).
"""

from .base import BaseRepository  # noqa: F401
from .tags import TagRepository  # noqa: F401
from .users import UserRepository  # noqa: F401
from .work_items import WorkItemRepository  # noqa: F401
