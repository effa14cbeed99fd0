"""Add communications and their recipient notifications.

Revision ID: 0002_communications
Revises: 0001_core_schema
Create Date: 2026-10-02
"""

from alembic import op
import sqlalchemy as sa


revision = "0002_communications"
down_revision = "0001_core_schema"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "communications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("sender_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("recipient_id", sa.String(length=36), sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("period_id", sa.String(length=36), sa.ForeignKey("periods.id"), nullable=False),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("image_url", sa.String(length=1000)),
        sa.Column("word_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("is_selected", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("selection_method", sa.String(length=20)),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index(
        "ix_communications_recipient_period",
        "communications",
        ["recipient_id", "period_id", "status"],
    )
    op.create_index(
        "ix_communications_sender_status",
        "communications",
        ["sender_id", "status"],
    )

    op.create_table(
        "communication_notifications",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "communication_id",
            sa.String(length=36),
            sa.ForeignKey("communications.id"),
            nullable=False,
        ),
        sa.Column("recipient_id", sa.String(length=36), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )


def downgrade() -> None:
    op.drop_table("communication_notifications")
    op.drop_index("ix_communications_sender_status", table_name="communications")
    op.drop_index("ix_communications_recipient_period", table_name="communications")
    op.drop_table("communications")
