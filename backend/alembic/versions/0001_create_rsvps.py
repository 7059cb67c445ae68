"""create_rsvps

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates the rsvps table. UNIQUE(event_id, guest_name) is the conflict
target of the RSVP upsert.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "rsvps",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("event_id", sa.String(100), nullable=False),
        sa.Column("guest_name", sa.String(100), nullable=False),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("event_id", "guest_name", name="uq_rsvps_event_guest"),
        sa.CheckConstraint("status IN ('yes', 'no', 'maybe')", name="ck_rsvps_status"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_rsvps_event_id", "rsvps", ["event_id"])


def downgrade() -> None:
    op.drop_index("ix_rsvps_event_id", table_name="rsvps")
    op.drop_table("rsvps")
