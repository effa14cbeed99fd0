"""
CollabGate Database Models
PostgreSQL (or SQLite for development) schema
"""

from datetime import datetime
import uuid
from sqlalchemy import (
    Column, Integer, String, Text, Boolean, Date,
    DateTime, ForeignKey, CheckConstraint, Index, UniqueConstraint, JSON, event
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship, declarative_base

import core.config as config
from core.participation import (
    ParticipationMode,
    MembershipRole,
    MembershipStatus,
    Participation,
    participation_metadata,
)

DB_BACKEND_EFFECTIVE = config.DB_BACKEND_EFFECTIVE

JSON_TYPE = JSONB if DB_BACKEND_EFFECTIVE == "postgres" else JSON
ID_TYPE = String(36)


def _uuid_default() -> str:
    return str(uuid.uuid4())

Base = declarative_base()


# =============================================================================
# Periods (seasonal issue cycles)
# =============================================================================

class Period(Base):
    __tablename__ = "periods"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    name = Column(String(255), nullable=False)
    season = Column(String(50))
    year = Column(Integer)
    start_date = Column(Date)
    end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (
        Index("ix_periods_active_end_date", "is_active", "end_date"),
    )


# =============================================================================
# Collaboration Templates
# =============================================================================

class CollabTemplate(Base):
    __tablename__ = "collab_templates"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    name = Column(String(500), nullable=False)
    display_text = Column(Text)
    type = Column(String(20))  # chain, theme, narrative; NULL on legacy rows
    phases = Column(Integer)
    duration = Column(String(100))
    requirements = Column(JSON_TYPE)
    connection_rules = Column(JSON_TYPE)
    internal_reference = Column(JSON_TYPE)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    periods = relationship("PeriodTemplate", back_populates="template")


class PeriodTemplate(Base):
    __tablename__ = "period_templates"

    period_id = Column(ID_TYPE, ForeignKey("periods.id"), primary_key=True)
    template_id = Column(ID_TYPE, ForeignKey("collab_templates.id"), primary_key=True)

    template = relationship("CollabTemplate", back_populates="periods")


# =============================================================================
# Profiles & connections
# =============================================================================

class Profile(Base):
    __tablename__ = "profiles"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    first_name = Column(String(255))
    last_name = Column(String(255))
    city = Column(String(255))
    bio = Column(Text)
    avatar_url = Column(String(1000))
    is_public = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    @property
    def display_name(self) -> str:
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or "User"


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    subscriber_id = Column(ID_TYPE, ForeignKey("profiles.id"), nullable=False)
    creator_id = Column(ID_TYPE, ForeignKey("profiles.id"), nullable=False)
    status = Column(String(20), nullable=False, default="pending")  # pending, active
    subscribed_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (
        Index("ix_subscriptions_pair", "subscriber_id", "creator_id"),
    )


# =============================================================================
# Collaborations & memberships
# =============================================================================

class Collaboration(Base):
    __tablename__ = "collabs"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    type = Column(String(20))
    is_private = Column(Boolean, default=False, nullable=False)
    created_by = Column(ID_TYPE, nullable=False)
    period_id = Column(ID_TYPE, ForeignKey("periods.id"))
    current_phase = Column(Integer, default=1)
    total_phases = Column(Integer)
    metadata_ = Column("metadata", JSON_TYPE, default=dict)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    participants = relationship("CollabParticipant", back_populates="collab")

    __table_args__ = (
        Index("ix_collabs_created_by", "created_by"),
        Index("ix_collabs_period", "period_id"),
    )

    @property
    def participation_mode(self) -> str:
        return (self.metadata_ or {}).get("participation_mode") or ParticipationMode.community.value

    @property
    def template_id(self):
        return (self.metadata_ or {}).get("template_id")

    def apply_participation(self, participation: Participation) -> None:
        metadata = dict(self.metadata_ or {})
        metadata.update(participation_metadata(participation))
        self.metadata_ = metadata
        self.is_private = participation.is_private


class CollabParticipant(Base):
    __tablename__ = "collab_participants"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    profile_id = Column(ID_TYPE, nullable=False)
    collab_id = Column(ID_TYPE, ForeignKey("collabs.id"), nullable=False)
    role = Column(String(20), nullable=False, default=MembershipRole.member.value)
    status = Column(String(20), nullable=False, default=MembershipStatus.active.value)
    participation_mode = Column(String(20))
    location = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    collab = relationship("Collaboration", back_populates="participants")

    __table_args__ = (
        CheckConstraint("role IN ('member', 'organizer')", name="ck_collab_participants_role"),
        CheckConstraint(
            "status IN ('active', 'invited', 'left')",
            name="ck_collab_participants_status",
        ),
        Index("ix_collab_participants_profile_status", "profile_id", "status"),
        Index("ix_collab_participants_collab_status", "collab_id", "status"),
    )


# =============================================================================
# Published content & sponsor campaigns
# =============================================================================

class Content(Base):
    __tablename__ = "content"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    creator_id = Column(ID_TYPE, ForeignKey("profiles.id"), nullable=False)
    period_id = Column(ID_TYPE, ForeignKey("periods.id"), nullable=False)
    type = Column(String(50))  # photo, art, poetry, essay, music
    status = Column(String(20), nullable=False, default="draft")  # draft, submitted, published
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    creator = relationship("Profile")
    entries = relationship("ContentEntry", back_populates="content", order_by="ContentEntry.position")

    __table_args__ = (
        Index("ix_content_period_status", "period_id", "status"),
    )


class ContentEntry(Base):
    __tablename__ = "content_entries"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    content_id = Column(ID_TYPE, ForeignKey("content.id"), nullable=False)
    position = Column(Integer, default=0, nullable=False)
    title = Column(String(500))
    caption = Column(Text)
    media_url = Column(String(1000))

    content = relationship("Content", back_populates="entries")
    tags = relationship("ContentTag", back_populates="entry")


class ContentTag(Base):
    __tablename__ = "content_tags"

    id = Column(Integer, primary_key=True)
    entry_id = Column(ID_TYPE, ForeignKey("content_entries.id"), nullable=False)
    tag = Column(String(100), nullable=False)

    entry = relationship("ContentEntry", back_populates="tags")


class Campaign(Base):
    __tablename__ = "campaigns"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    period_id = Column(ID_TYPE, ForeignKey("periods.id"), nullable=False)
    name = Column(String(255), nullable=False)
    bio = Column(Text)
    avatar_url = Column(String(1000))
    last_post = Column(String(500))
    discount = Column(Integer, default=2)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)


# =============================================================================
# Communications
# =============================================================================

class Communication(Base):
    __tablename__ = "communications"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    sender_id = Column(ID_TYPE, ForeignKey("profiles.id"), nullable=False)
    recipient_id = Column(ID_TYPE, ForeignKey("profiles.id"), nullable=False)
    period_id = Column(ID_TYPE, ForeignKey("periods.id"), nullable=False)
    subject = Column(String(500), nullable=False)
    content = Column(Text, nullable=False)
    image_url = Column(String(1000))
    word_count = Column(Integer, default=0, nullable=False)
    status = Column(String(20), nullable=False, default="draft")  # draft, submitted
    is_selected = Column(Boolean, default=False, nullable=False)
    selection_method = Column(String(20))
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    sender = relationship("Profile", foreign_keys=[sender_id])
    recipient = relationship("Profile", foreign_keys=[recipient_id])

    __table_args__ = (
        Index("ix_communications_recipient_period", "recipient_id", "period_id", "status"),
        Index("ix_communications_sender_status", "sender_id", "status"),
    )


class CommunicationNotification(Base):
    __tablename__ = "communication_notifications"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    communication_id = Column(ID_TYPE, ForeignKey("communications.id"), nullable=False)
    recipient_id = Column(ID_TYPE, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)


# =============================================================================
# Curator selections (one table per category)
# =============================================================================

class CuratorCreatorSelection(Base):
    __tablename__ = "curator_creator_selections"

    id = Column(Integer, primary_key=True)
    curator_id = Column(ID_TYPE, nullable=False)
    period_id = Column(ID_TYPE, ForeignKey("periods.id"), nullable=False)
    creator_id = Column(ID_TYPE, nullable=False)
    selected_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("curator_id", "period_id", "creator_id", name="uq_curator_creator_selections"),
    )


class CuratorCampaignSelection(Base):
    __tablename__ = "curator_campaign_selections"

    id = Column(Integer, primary_key=True)
    curator_id = Column(ID_TYPE, nullable=False)
    period_id = Column(ID_TYPE, ForeignKey("periods.id"), nullable=False)
    campaign_id = Column(ID_TYPE, nullable=False)
    selected_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("curator_id", "period_id", "campaign_id", name="uq_curator_campaign_selections"),
    )


class CuratorCollabSelection(Base):
    __tablename__ = "curator_collab_selections"

    id = Column(Integer, primary_key=True)
    curator_id = Column(ID_TYPE, nullable=False)
    period_id = Column(ID_TYPE, ForeignKey("periods.id"), nullable=False)
    collab_id = Column(ID_TYPE, nullable=False)
    selected_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("curator_id", "period_id", "collab_id", name="uq_curator_collab_selections"),
    )


class CuratorCommunicationSelection(Base):
    __tablename__ = "curator_communication_selections"

    id = Column(Integer, primary_key=True)
    curator_id = Column(ID_TYPE, nullable=False)
    period_id = Column(ID_TYPE, ForeignKey("periods.id"), nullable=False)
    include_communications = Column(Boolean, default=False, nullable=False)
    selected_at = Column(DateTime(timezone=True), default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("curator_id", "period_id", name="uq_curator_communication_selections"),
    )


# =============================================================================
# Audit Events (metadata-only)
# =============================================================================

class AuditEvent(Base):
    __tablename__ = "audit_events"

    event_id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    event_type = Column(String(100), nullable=False)
    event_version = Column(Integer, default=1, nullable=False)
    actor_type = Column(String(50), nullable=False)
    actor_id = Column(String(255))
    target_type = Column(String(50), nullable=False)
    target_ids = Column(JSON_TYPE, nullable=False)
    count_affected = Column(Integer)
    reason = Column(Text)
    request_id = Column(String(255))
    metadata_ = Column("metadata", JSON_TYPE)

    __table_args__ = (
        Index("ix_audit_events_created_at", "created_at"),
        Index("ix_audit_events_event_type", "event_type"),
        Index("ix_audit_events_actor_id", "actor_id"),
    )


SELECTION_MODELS = {
    "creators": (CuratorCreatorSelection, "creator_id"),
    "sponsors": (CuratorCampaignSelection, "campaign_id"),
    "collaborations": (CuratorCollabSelection, "collab_id"),
}


@event.listens_for(Collaboration, "before_insert")
@event.listens_for(Collaboration, "before_update")
def _derive_is_private(mapper, connection, target) -> None:
    metadata = dict(target.metadata_ or {})
    if not metadata.get("participation_mode"):
        metadata["participation_mode"] = ParticipationMode.community.value
        target.metadata_ = metadata
    target.is_private = metadata["participation_mode"] == ParticipationMode.private.value


__all__ = [
    "Base",
    "Period",
    "CollabTemplate",
    "PeriodTemplate",
    "Profile",
    "Subscription",
    "Collaboration",
    "CollabParticipant",
    "Content",
    "ContentEntry",
    "ContentTag",
    "Campaign",
    "Communication",
    "CommunicationNotification",
    "CuratorCreatorSelection",
    "CuratorCampaignSelection",
    "CuratorCollabSelection",
    "CuratorCommunicationSelection",
    "AuditEvent",
    "SELECTION_MODELS",
]
