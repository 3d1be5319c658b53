"""create thread bindings table

Revision ID: 0001_create_thread_bindings
Revises:
Create Date: 2026-10-18 00:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_create_thread_bindings"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "thread_bindings",
        sa.Column("key", sa.String(length=128), nullable=False),
        sa.Column("session_id", sa.String(length=64), nullable=False),
        sa.Column("bound_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )
    op.create_index(
        "ix_thread_bindings_session_id", "thread_bindings", ["session_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_thread_bindings_session_id", table_name="thread_bindings")
    op.drop_table("thread_bindings")
