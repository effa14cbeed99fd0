"""
Membership ledger: participant rows per collaboration.

Rows are append-only on join and hard-deleted on leave; a profile may hold
historical rows for the same collaboration but at most one active one.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import func

from core.db import DB
from core.models import CollabParticipant, Collaboration, Profile
from core.participation import (
    MembershipRole,
    MembershipStatus,
    ParticipationMode,
    Participation,
)
from core.services.shared import service_tool


def active_memberships(db, actor_id: str) -> list[CollabParticipant]:
    return (
        db.query(CollabParticipant)
        .filter(
            CollabParticipant.profile_id == actor_id,
            CollabParticipant.status == MembershipStatus.active.value,
        )
        .order_by(CollabParticipant.created_at.asc())
        .all()
    )


def joined_collab_ids(db, actor_id: str) -> set[str]:
    rows = (
        db.query(CollabParticipant.collab_id)
        .filter(
            CollabParticipant.profile_id == actor_id,
            CollabParticipant.status == MembershipStatus.active.value,
        )
        .all()
    )
    return {row[0] for row in rows}


def active_template_ids(db, actor_id: str) -> set[str]:
    """Template ids behind every collaboration the actor is active in."""
    collab_ids = joined_collab_ids(db, actor_id)
    if not collab_ids:
        return set()
    rows = db.query(Collaboration.metadata_).filter(Collaboration.id.in_(collab_ids)).all()
    template_ids = set()
    for (metadata,) in rows:
        template_id = (metadata or {}).get("template_id")
        if isinstance(template_id, str) and template_id:
            template_ids.add(template_id)
    return template_ids


def memberships_by_collab(db, actor_id: str, collab_ids: Iterable[str]) -> dict[str, list[CollabParticipant]]:
    """Every row the actor holds (any status) against the given collaborations."""
    collab_ids = list(collab_ids)
    if not collab_ids:
        return {}
    rows = (
        db.query(CollabParticipant)
        .filter(
            CollabParticipant.profile_id == actor_id,
            CollabParticipant.collab_id.in_(collab_ids),
        )
        .order_by(CollabParticipant.created_at.asc())
        .all()
    )
    grouped: dict[str, list[CollabParticipant]] = {}
    for row in rows:
        grouped.setdefault(row.collab_id, []).append(row)
    return grouped


def role_for(participation: Participation) -> MembershipRole:
    return MembershipRole.organizer if participation.is_private else MembershipRole.member


def append_membership(
    db,
    *,
    profile_id: str,
    collab_id: str,
    role: MembershipRole,
    status: MembershipStatus,
    participation: Participation,
) -> CollabParticipant:
    row = CollabParticipant(
        profile_id=profile_id,
        collab_id=collab_id,
        role=role.value,
        status=status.value,
        participation_mode=participation.mode.value,
        location=participation.location_value(),
    )
    db.add(row)
    return row


def count_active_participants(db, collab_ids: Iterable[str]) -> dict[str, int]:
    """Grouped count of active memberships keyed by collaboration id."""
    collab_ids = list(set(collab_ids))
    if not collab_ids:
        return {}
    rows = (
        db.query(CollabParticipant.collab_id, func.count(CollabParticipant.id))
        .filter(
            CollabParticipant.collab_id.in_(collab_ids),
            CollabParticipant.status == MembershipStatus.active.value,
        )
        .group_by(CollabParticipant.collab_id)
        .all()
    )
    counts = {collab_id: 0 for collab_id in collab_ids}
    counts.update({collab_id: count for collab_id, count in rows})
    return counts


def display_names(db, profile_ids: Iterable[str]) -> dict[str, str]:
    profile_ids = list(set(profile_ids))
    if not profile_ids:
        return {}
    profiles = db.query(Profile).filter(Profile.id.in_(profile_ids)).all()
    names = {profile_id: "User" for profile_id in profile_ids}
    names.update({profile.id: profile.display_name for profile in profiles})
    return names


@service_tool
def list_local_cities() -> dict:
    """Locations of active local memberships with participant counts."""
    db = DB.SessionLocal()
    try:
        rows = (
            db.query(CollabParticipant.location, func.count(CollabParticipant.id))
            .filter(
                CollabParticipant.status == MembershipStatus.active.value,
                CollabParticipant.participation_mode == ParticipationMode.local.value,
                CollabParticipant.location.isnot(None),
            )
            .group_by(CollabParticipant.location)
            .all()
        )
        cities = [
            {"name": location, "participant_count": count}
            for location, count in rows
            if location and location.strip()
        ]
        cities.sort(key=lambda item: (-item["participant_count"], item["name"]))
        return {"success": True, "status": "found", "count": len(cities), "cities": cities}
    finally:
        db.close()
