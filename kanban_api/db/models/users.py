from __future__ import annotations

from sqlalchemy import Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kanban_api.db.base import Base, IntPkMixin


class User(IntPkMixin, Base):
    """Person work items can be assigned to."""
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(Text, nullable=False)

    # Back-reference only; assignment is written through WorkItem.assigned_to.
    work_items: Mapped[list["WorkItem"]] = relationship(
        "WorkItem",
        primaryjoin="User.id==WorkItem.assigned_to_id",
        viewonly=True,
        lazy="raise",
    )
