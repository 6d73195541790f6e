"""create offline batch tables

Revision ID: 5c1e0b7d9a24
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "5c1e0b7d9a24"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "offline_batches",
        sa.Column("batch_id", sa.String(length=100), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "offline_batch_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "batch_id",
            sa.String(length=100),
            sa.ForeignKey("offline_batches.batch_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("envelope_xdr", sa.Text(), nullable=False),
        sa.Column("threshold", sa.Text()),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("reason", sa.Text()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("batch_id", "position", name="uq_offline_batch_items_position"),
    )
    op.create_index("ix_offline_batch_items_batch_id", "offline_batch_items", ["batch_id"])


def downgrade() -> None:
    op.drop_index("ix_offline_batch_items_batch_id", table_name="offline_batch_items")
    op.drop_table("offline_batch_items")
    op.drop_table("offline_batches")
