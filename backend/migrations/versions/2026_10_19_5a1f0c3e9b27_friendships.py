"""friendships

Revision ID: 5a1f0c3e9b27
Revises:
Create Date: 2026-10-19 10:12:41.305118

"""

from alembic import op
import sqlalchemy as sa
import sqlmodel

import settings
from models import UtcAwareDateTime

# revision identifiers, used by Alembic.
revision = "5a1f0c3e9b27"
down_revision = None
branch_labels = None
depends_on = None

FRIENDSHIPS = settings.FRIENDSHIPS_TABLE
GROUPS = settings.FRIENDSHIP_GROUPS_TABLE


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("name", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("username", sqlmodel.sql.sqltypes.AutoString(), nullable=True),
        sa.Column("created_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.Column("updated_at", UtcAwareDateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.create_index(batch_op.f("ix_users_email"), ["email"], unique=True)
        batch_op.create_index(
            batch_op.f("ix_users_username"), ["username"], unique=True
        )

    op.create_table(
        FRIENDSHIPS,
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("sender_type", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("recipient_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column(
            "recipient_type", sqlmodel.sql.sqltypes.AutoString(), nullable=False
        ),
        sa.Column(
            "status",
            sa.Enum(
                "pending", "accepted", "denied", "blocked", name="friendshipstatus"
            ),
            nullable=False,
        ),
        sa.Column("created_at", UtcAwareDateTime(timezone=True), nullable=False),
        sa.Column("updated_at", UtcAwareDateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table(FRIENDSHIPS, schema=None) as batch_op:
        for column in (
            "sender_id",
            "sender_type",
            "recipient_id",
            "recipient_type",
            "status",
        ):
            batch_op.create_index(
                batch_op.f(f"ix_{FRIENDSHIPS}_{column}"), [column], unique=False
            )

    op.create_table(
        GROUPS,
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("friendship_id", sa.Integer(), nullable=False),
        sa.Column("group_id", sa.Integer(), nullable=False),
        sa.Column("friend_id", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column("friend_type", sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.ForeignKeyConstraint(
            ["friendship_id"],
            [f"{FRIENDSHIPS}.id"],
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "friendship_id",
            "group_id",
            "friend_id",
            "friend_type",
            name="uq_friendship_group",
        ),
    )
    with op.batch_alter_table(GROUPS, schema=None) as batch_op:
        batch_op.create_index(
            batch_op.f(f"ix_{GROUPS}_friendship_id"), ["friendship_id"], unique=False
        )
        batch_op.create_index(
            batch_op.f(f"ix_{GROUPS}_group_id"), ["group_id"], unique=False
        )


def downgrade() -> None:
    op.drop_table(GROUPS)
    op.drop_table(FRIENDSHIPS)
    with op.batch_alter_table("users", schema=None) as batch_op:
        batch_op.drop_index(batch_op.f("ix_users_username"))
        batch_op.drop_index(batch_op.f("ix_users_email"))
    op.drop_table("users")
