"""
Collaboration store: instances created from templates and their metadata.
"""

from __future__ import annotations

from typing import Optional

from core.db import DB
from core.errors import NotFoundIssue
from core.models import CollabParticipant, CollabTemplate, Collaboration
from core.participation import (
    MembershipStatus,
    Participation,
    ParticipationMode,
    participation_from_metadata,
)
from core.services.memberships import count_active_participants, display_names
from core.services.shared import (
    service_tool,
    _isoformat,
    _validate_id,
    _normalize_id_list,
    MAX_SELECTION_ITEMS,
)


def create_collaboration(
    db,
    *,
    template: CollabTemplate,
    actor_id: str,
    participation: Participation,
    period_id: Optional[str],
) -> Collaboration:
    """Instantiate a template; template details travel in metadata for later display."""
    collab = Collaboration(
        title=template.name,
        description=template.display_text,
        type=template.type,
        created_by=actor_id,
        period_id=period_id,
        current_phase=1,
        total_phases=template.phases,
        metadata_={
            "template_id": template.id,
            "requirements": template.requirements,
            "connection_rules": template.connection_rules,
            "internal_reference": template.internal_reference,
        },
    )
    collab.apply_participation(participation)
    db.add(collab)
    return collab


def find_prior_collaborations(db, actor_id: str, template_id: str) -> list[Collaboration]:
    """Every collaboration the actor created from the template, oldest first."""
    return (
        db.query(Collaboration)
        .filter(
            Collaboration.created_by == actor_id,
            Collaboration.metadata_["template_id"].as_string() == template_id,
        )
        .order_by(Collaboration.created_at.asc(), Collaboration.id.asc())
        .all()
    )


def get_collaboration_row(db, collab_id: str) -> Collaboration:
    collab = db.query(Collaboration).filter(Collaboration.id == collab_id).first()
    if collab is None:
        raise NotFoundIssue(f"Collaboration not found: {collab_id}", resource="collaboration", resource_id=collab_id)
    return collab


def active_roster(db, collab_id: str) -> list[dict]:
    rows = (
        db.query(CollabParticipant)
        .filter(
            CollabParticipant.collab_id == collab_id,
            CollabParticipant.status == MembershipStatus.active.value,
        )
        .order_by(CollabParticipant.created_at.asc())
        .all()
    )
    names = display_names(db, [row.profile_id for row in rows])
    return [
        {"profile_id": row.profile_id, "name": names.get(row.profile_id, "User"), "role": row.role}
        for row in rows
    ]


def serialize_collaboration(collab: Collaboration, participant_count: Optional[int] = None) -> dict:
    participation = participation_from_metadata(collab.metadata_)
    payload = {
        "id": collab.id,
        "title": collab.title,
        "description": collab.description,
        "type": collab.type,
        "is_private": bool(collab.is_private),
        "participation_mode": participation.mode.value,
        "location": participation.location_value(),
        "template_id": collab.template_id,
        "period_id": collab.period_id,
        "created_by": collab.created_by,
        "current_phase": collab.current_phase,
        "total_phases": collab.total_phases,
        "created_at": _isoformat(collab.created_at),
        "last_active": _isoformat(collab.updated_at or collab.created_at),
    }
    if participant_count is not None:
        payload["participant_count"] = participant_count
    return payload


def open_period_collaborations(db, period_id: str) -> list[Collaboration]:
    """Community and local collaborations created during the period."""
    rows = (
        db.query(Collaboration)
        .filter(
            Collaboration.period_id == period_id,
            Collaboration.is_private.is_(False),
        )
        .order_by(Collaboration.created_at.asc())
        .all()
    )
    return [
        row for row in rows
        if participation_from_metadata(row.metadata_).mode != ParticipationMode.private
    ]


@service_tool
def get_collaboration(collab_id: str, actor_id: Optional[str] = None) -> dict:
    """
    Detail view of one collaboration.

    The roster of a private collaboration is returned only to its members;
    other callers get the summary without participants.
    """
    _validate_id(collab_id, "collab_id")
    db = DB.SessionLocal()
    try:
        collab = get_collaboration_row(db, collab_id)
        roster = active_roster(db, collab.id)
        payload = serialize_collaboration(collab, participant_count=len(roster))
        metadata = collab.metadata_ or {}
        payload["requirements"] = metadata.get("requirements")
        payload["connection_rules"] = metadata.get("connection_rules")
        payload["internal_reference"] = metadata.get("internal_reference")

        is_member = bool(actor_id) and any(item["profile_id"] == actor_id for item in roster)
        roster_visible = not collab.is_private or is_member
        payload["participants"] = roster if roster_visible else []
        payload["roster_visible"] = roster_visible
        payload["is_member"] = is_member
        return {"success": True, "status": "found", "collaboration": payload}
    finally:
        db.close()


@service_tool
def participant_counts(collab_ids: list[str]) -> dict:
    """Live active-participant counts keyed by collaboration id."""
    collab_ids = _normalize_id_list(collab_ids, "collab_ids", MAX_SELECTION_ITEMS)
    if not collab_ids:
        return {"success": True, "status": "found", "counts": {}}
    db = DB.SessionLocal()
    try:
        return {"success": True, "status": "found", "counts": count_active_participants(db, collab_ids)}
    finally:
        db.close()
