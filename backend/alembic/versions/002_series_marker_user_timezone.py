"""Track spawned successors on recurring reminders; per-user timezone

Revision ID: 002
Revises: 001
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column("reminders", sa.Column("next_occurrence_created_at", sa.DateTime(timezone=True), nullable=True))
    op.add_column(
        "users",
        sa.Column("timezone", sa.String(64), nullable=False, server_default="Asia/Tehran"),
    )
    op.alter_column("users", "language", server_default="fa")


def downgrade() -> None:
    op.alter_column("users", "language", server_default="en")
    op.drop_column("users", "timezone")
    op.drop_column("reminders", "next_occurrence_created_at")
