"""Kanban tracker schema.

- users (unique email)
- tags (unique name)
- work_items (assignee FK, state, created/state_updated timestamps)
- work_item_tags (work item <-> tag association)
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATES = ("New", "Active", "Resolved", "Closed", "Removed")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("email", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_tags"),
        sa.UniqueConstraint("name", name="uq_tags_name"),
    )

    op.create_table(
        "work_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("assigned_to_id", sa.Integer(), nullable=True),
        sa.Column(
            "state",
            sa.Enum(*STATES, name="work_item_state", native_enum=False, length=16),
            nullable=False,
        ),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("state_updated", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_work_items"),
        sa.ForeignKeyConstraint(
            ["assigned_to_id"], ["users.id"],
            name="fk_work_items_assigned_to_id_users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_work_items_assigned_to_id", "work_items", ["assigned_to_id"])
    op.create_index("ix_work_items_state", "work_items", ["state"])

    op.create_table(
        "work_item_tags",
        sa.Column("work_item_id", sa.Integer(), nullable=False),
        sa.Column("tag_id", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("work_item_id", "tag_id", name="pk_work_item_tags"),
        sa.ForeignKeyConstraint(
            ["work_item_id"], ["work_items.id"],
            name="fk_work_item_tags_work_item_id_work_items",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["tag_id"], ["tags.id"],
            name="fk_work_item_tags_tag_id_tags",
            ondelete="CASCADE",
        ),
    )


def downgrade() -> None:
    op.drop_table("work_item_tags")
    op.drop_index("ix_work_items_state", table_name="work_items")
    op.drop_index("ix_work_items_assigned_to_id", table_name="work_items")
    op.drop_table("work_items")
    op.drop_table("tags")
    op.drop_table("users")
