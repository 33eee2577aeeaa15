from __future__ import annotations

from sqlalchemy import Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kanban_api.db.base import Base, IntPkMixin


class Tag(IntPkMixin, Base):
    """Label attached to work items; names are unique."""
    __tablename__ = "tags"
    __table_args__ = (
        UniqueConstraint("name", name="uq_tags_name"),
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)

    # Back-reference only; the association is written through WorkItem.tags.
    work_items: Mapped[list["WorkItem"]] = relationship(
        "WorkItem",
        secondary="work_item_tags",
        viewonly=True,
        lazy="raise",
    )
