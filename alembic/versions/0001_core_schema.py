"""Core schema: periods, templates, profiles, collaborations, content, selections.

Revision ID: 0001_core_schema
Revises:
Create Date: 2026-09-28
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_core_schema"
down_revision = None
branch_labels = None
depends_on = None

ID = sa.String(length=36)


def _selection_table(name: str, target_column: str, unique_name: str) -> None:
    op.create_table(
        name,
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("curator_id", ID, nullable=False),
        sa.Column("period_id", ID, sa.ForeignKey("periods.id"), nullable=False),
        sa.Column(target_column, ID, nullable=False),
        sa.Column("selected_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("curator_id", "period_id", target_column, name=unique_name),
    )


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"
    json_type = postgresql.JSONB if is_postgres else sa.JSON

    op.create_table(
        "periods",
        sa.Column("id", ID, primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("season", sa.String(length=50)),
        sa.Column("year", sa.Integer()),
        sa.Column("start_date", sa.Date()),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_periods_active_end_date", "periods", ["is_active", "end_date"])

    op.create_table(
        "collab_templates",
        sa.Column("id", ID, primary_key=True),
        sa.Column("name", sa.String(length=500), nullable=False),
        sa.Column("display_text", sa.Text()),
        sa.Column("type", sa.String(length=20)),
        sa.Column("phases", sa.Integer()),
        sa.Column("duration", sa.String(length=100)),
        sa.Column("requirements", json_type),
        sa.Column("connection_rules", json_type),
        sa.Column("internal_reference", json_type),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "period_templates",
        sa.Column("period_id", ID, sa.ForeignKey("periods.id"), primary_key=True),
        sa.Column("template_id", ID, sa.ForeignKey("collab_templates.id"), primary_key=True),
    )

    op.create_table(
        "profiles",
        sa.Column("id", ID, primary_key=True),
        sa.Column("first_name", sa.String(length=255)),
        sa.Column("last_name", sa.String(length=255)),
        sa.Column("city", sa.String(length=255)),
        sa.Column("bio", sa.Text()),
        sa.Column("avatar_url", sa.String(length=1000)),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "subscriptions",
        sa.Column("id", ID, primary_key=True),
        sa.Column("subscriber_id", ID, sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("creator_id", ID, sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("subscribed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_subscriptions_pair", "subscriptions", ["subscriber_id", "creator_id"])

    op.create_table(
        "collabs",
        sa.Column("id", ID, primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("type", sa.String(length=20)),
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", ID, nullable=False),
        sa.Column("period_id", ID, sa.ForeignKey("periods.id")),
        sa.Column("current_phase", sa.Integer()),
        sa.Column("total_phases", sa.Integer()),
        sa.Column("metadata", json_type),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_collabs_created_by", "collabs", ["created_by"])
    op.create_index("ix_collabs_period", "collabs", ["period_id"])

    op.create_table(
        "collab_participants",
        sa.Column("id", ID, primary_key=True),
        sa.Column("profile_id", ID, nullable=False),
        sa.Column("collab_id", ID, sa.ForeignKey("collabs.id"), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="member"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="active"),
        sa.Column("participation_mode", sa.String(length=20)),
        sa.Column("location", sa.String(length=255)),
        sa.Column("created_at", sa.DateTime(timezone=True)),
        sa.CheckConstraint("role IN ('member', 'organizer')", name="ck_collab_participants_role"),
        sa.CheckConstraint(
            "status IN ('active', 'invited', 'left')",
            name="ck_collab_participants_status",
        ),
    )
    op.create_index(
        "ix_collab_participants_profile_status",
        "collab_participants",
        ["profile_id", "status"],
    )
    op.create_index(
        "ix_collab_participants_collab_status",
        "collab_participants",
        ["collab_id", "status"],
    )

    op.create_table(
        "content",
        sa.Column("id", ID, primary_key=True),
        sa.Column("creator_id", ID, sa.ForeignKey("profiles.id"), nullable=False),
        sa.Column("period_id", ID, sa.ForeignKey("periods.id"), nullable=False),
        sa.Column("type", sa.String(length=50)),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_content_period_status", "content", ["period_id", "status"])

    op.create_table(
        "content_entries",
        sa.Column("id", ID, primary_key=True),
        sa.Column("content_id", ID, sa.ForeignKey("content.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("title", sa.String(length=500)),
        sa.Column("caption", sa.Text()),
        sa.Column("media_url", sa.String(length=1000)),
    )

    op.create_table(
        "content_tags",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("entry_id", ID, sa.ForeignKey("content_entries.id"), nullable=False),
        sa.Column("tag", sa.String(length=100), nullable=False),
    )

    op.create_table(
        "campaigns",
        sa.Column("id", ID, primary_key=True),
        sa.Column("period_id", ID, sa.ForeignKey("periods.id"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("bio", sa.Text()),
        sa.Column("avatar_url", sa.String(length=1000)),
        sa.Column("last_post", sa.String(length=500)),
        sa.Column("discount", sa.Integer(), server_default="2"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True)),
    )

    _selection_table("curator_creator_selections", "creator_id", "uq_curator_creator_selections")
    _selection_table("curator_campaign_selections", "campaign_id", "uq_curator_campaign_selections")
    _selection_table("curator_collab_selections", "collab_id", "uq_curator_collab_selections")

    op.create_table(
        "curator_communication_selections",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("curator_id", ID, nullable=False),
        sa.Column("period_id", ID, sa.ForeignKey("periods.id"), nullable=False),
        sa.Column("include_communications", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("selected_at", sa.DateTime(timezone=True)),
        sa.UniqueConstraint("curator_id", "period_id", name="uq_curator_communication_selections"),
    )


def downgrade() -> None:
    op.drop_table("curator_communication_selections")
    op.drop_table("curator_collab_selections")
    op.drop_table("curator_campaign_selections")
    op.drop_table("curator_creator_selections")
    op.drop_table("campaigns")
    op.drop_table("content_tags")
    op.drop_table("content_entries")
    op.drop_index("ix_content_period_status", table_name="content")
    op.drop_table("content")
    op.drop_index("ix_collab_participants_collab_status", table_name="collab_participants")
    op.drop_index("ix_collab_participants_profile_status", table_name="collab_participants")
    op.drop_table("collab_participants")
    op.drop_index("ix_collabs_period", table_name="collabs")
    op.drop_index("ix_collabs_created_by", table_name="collabs")
    op.drop_table("collabs")
    op.drop_index("ix_subscriptions_pair", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_table("profiles")
    op.drop_table("period_templates")
    op.drop_table("collab_templates")
    op.drop_index("ix_periods_active_end_date", table_name="periods")
    op.drop_table("periods")
