from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Enum, ForeignKey, Integer, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kanban_api.core.lifecycle import State
from kanban_api.db.base import Base, IntPkMixin, UTCDateTime, utcnow


work_item_tags = Table(
    "work_item_tags",
    Base.metadata,
    Column("work_item_id", Integer, ForeignKey("work_items.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class WorkItem(IntPkMixin, Base):
    """Trackable task moving through the New/Active/Resolved/Closed/Removed states."""
    __tablename__ = "work_items"

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    assigned_to_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    state: Mapped[State] = mapped_column(
        Enum(
            State,
            name="work_item_state",
            native_enum=False,
            length=16,
            values_callable=lambda states: [s.value for s in states],
        ),
        nullable=False,
        default=State.NEW,
        index=True,
    )
    created: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    state_updated: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    assigned_to: Mapped[Optional["User"]] = relationship("User", lazy="selectin")
    tags: Mapped[set["Tag"]] = relationship(
        "Tag",
        secondary=work_item_tags,
        collection_class=set,
        lazy="selectin",
    )
