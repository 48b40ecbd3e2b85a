"""Add telemetry_events table.

Revision ID: b7e2d4a91c30
Revises:
Create Date: 2026-10-19

"""

from alembic import op
import sqlalchemy as sa


revision = "b7e2d4a91c30"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "telemetry_events",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("properties", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    # Dashboards filter by event name and time window
    op.create_index("ix_telemetry_events_name", "telemetry_events", ["name"])
    op.create_index(
        "ix_telemetry_events_created_at", "telemetry_events", ["created_at"]
    )


def downgrade():
    op.drop_index("ix_telemetry_events_created_at", table_name="telemetry_events")
    op.drop_index("ix_telemetry_events_name", table_name="telemetry_events")
    op.drop_table("telemetry_events")
