"""
Collaboration lifecycle: join, leave and list a profile's collaborations.

Writes are committed step by step. The collaboration row and the actor's own
membership are the minimum outcome of a join; invites are best-effort and a
failed invite never undoes the earlier commits. Joins by the same actor for
the same template are serialized, so at most one collaboration is created.
"""

from __future__ import annotations

from typing import Optional, List

from sqlalchemy.exc import SQLAlchemyError

import core.config as config
from core.audit import log_event
from core.audit_constants import (
    EVENT_COLLAB_CREATED,
    EVENT_MEMBERSHIP_INVITED,
    EVENT_MEMBERSHIP_JOINED,
    EVENT_MEMBERSHIP_LEFT,
    EVENT_MEMBERSHIP_REACTIVATED,
)
from core.context import RequestContext
from core.db import DB
from core.errors import NotFoundIssue
from core.models import CollabParticipant, Collaboration, Profile
from core.participation import (
    MembershipRole,
    MembershipStatus,
    ParticipationMode,
    Participation,
    build_participation,
    parse_mode,
    participation_from_metadata,
)
from core.services.collabs import (
    active_roster,
    create_collaboration,
    find_prior_collaborations,
    serialize_collaboration,
)
from core.services.locking import serialized_session
from core.services.memberships import (
    active_memberships,
    append_membership,
    count_active_participants,
    memberships_by_collab,
    role_for,
)
from core.services.periods import resolve_current_period
from core.services.templates import get_template
from core.services.shared import (
    service_tool,
    logger,
    _require_actor,
    _validate_id,
    _normalize_id_list,
    MAX_INVITEES,
)


def _request_id(context: Optional[RequestContext]) -> Optional[str]:
    return context.request_id if context else None


def resolve_location(db, actor_id: str) -> str:
    """Profile city when set, otherwise the configured default location."""
    profile = db.query(Profile).filter(Profile.id == actor_id).first()
    if profile is not None and profile.city and profile.city.strip():
        return profile.city.strip()
    return config.DEFAULT_LOCATION


def _resolve_participation(db, actor_id: str, mode: ParticipationMode) -> Participation:
    location = resolve_location(db, actor_id) if mode == ParticipationMode.local else None
    return build_participation(mode, location)


def _send_invite(db, collab: Collaboration, invitee_id: str, participation: Participation) -> None:
    append_membership(
        db,
        profile_id=invitee_id,
        collab_id=collab.id,
        role=MembershipRole.member,
        status=MembershipStatus.invited,
        participation=participation,
    )
    db.commit()


def _send_invites(
    db,
    collab: Collaboration,
    actor_id: str,
    invitees: List[str],
    participation: Participation,
    request_id: Optional[str],
) -> tuple[list[str], list[str]]:
    sent: list[str] = []
    failed: list[str] = []
    for invitee_id in invitees:
        try:
            _send_invite(db, collab, invitee_id, participation)
            sent.append(invitee_id)
        except SQLAlchemyError:
            db.rollback()
            failed.append(invitee_id)
    if failed:
        logger.warning(
            "collab_invites_failed",
            extra={"collab_id": collab.id, "failed": failed, "sent": len(sent)},
        )
    if sent:
        try:
            log_event(
                db,
                event_type=EVENT_MEMBERSHIP_INVITED,
                actor_type="user",
                actor_id=actor_id,
                target_type="membership",
                target_ids=[collab.id],
                count_affected=len(sent),
                request_id=request_id,
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning("collab_invite_audit_failed", extra={"collab_id": collab.id})
    return sent, failed


def _reactivate(
    db,
    prior: list[Collaboration],
    actor_id: str,
    participation: Participation,
    request_id: Optional[str],
) -> Optional[dict]:
    """
    Rejoin through an earlier collaboration of the same template.

    Returns None when no prior collaboration still has a membership row of the
    actor, in which case the caller creates a fresh one.
    """
    if not prior:
        return None
    rows_by_collab = memberships_by_collab(db, actor_id, [collab.id for collab in prior])
    for collab in prior:
        rows = rows_by_collab.get(collab.id, [])
        if any(row.status == MembershipStatus.active.value for row in rows):
            return {
                "success": True,
                "status": "already_joined",
                "collab_id": collab.id,
                "participation_mode": participation_from_metadata(collab.metadata_).mode.value,
            }
    target = next((collab for collab in prior if rows_by_collab.get(collab.id)), None)
    if target is None:
        return None

    target.apply_participation(participation)
    append_membership(
        db,
        profile_id=actor_id,
        collab_id=target.id,
        role=role_for(participation),
        status=MembershipStatus.active,
        participation=participation,
    )
    log_event(
        db,
        event_type=EVENT_MEMBERSHIP_REACTIVATED,
        actor_type="user",
        actor_id=actor_id,
        target_type="membership",
        target_ids=[target.id],
        request_id=request_id,
        metadata={"participation_mode": participation.mode.value},
    )
    db.commit()
    logger.info(
        "membership_reactivated",
        extra={"collab_id": target.id, "actor_id": actor_id, "mode": participation.mode.value},
    )
    return {
        "success": True,
        "status": "reactivated",
        "collab_id": target.id,
        "participation_mode": participation.mode.value,
    }


@service_tool
def join_collaboration(
    actor_id: str,
    template_id: str,
    mode: str = "community",
    invitees: Optional[List[str]] = None,
    is_private: Optional[bool] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    Join a collaboration built from a template.

    Args:
        actor_id: Profile joining
        template_id: Template to instantiate
        mode: community, local or private; the only source of privacy
        invitees: Profiles invited to a private collaboration
        is_private: Accepted for older callers; overridden by mode

    Returns:
        The collaboration id with status created, reactivated or already_joined
    """
    actor_id = _require_actor(actor_id)
    _validate_id(template_id, "template_id")
    participation_mode = parse_mode(mode)
    invitees = [
        invitee for invitee in _normalize_id_list(invitees, "invitees", MAX_INVITEES)
        if invitee != actor_id
    ]
    request_id = _request_id(context)

    with serialized_session("join", actor_id, template_id) as db:
        template = get_template(db, template_id)
        participation = _resolve_participation(db, actor_id, participation_mode)
        if is_private is not None and bool(is_private) != participation.is_private:
            logger.info(
                "privacy_flag_overridden",
                extra={"template_id": template_id, "mode": participation.mode.value},
            )

        prior = find_prior_collaborations(db, actor_id, template.id)
        rejoined = _reactivate(db, prior, actor_id, participation, request_id)
        if rejoined is not None:
            return rejoined

        period = resolve_current_period(db)
        collab = create_collaboration(
            db,
            template=template,
            actor_id=actor_id,
            participation=participation,
            period_id=period.id if period else None,
        )
        db.flush()
        log_event(
            db,
            event_type=EVENT_COLLAB_CREATED,
            actor_type="user",
            actor_id=actor_id,
            target_type="collaboration",
            target_ids=[collab.id],
            request_id=request_id,
            metadata={"template_id": template.id, "participation_mode": participation.mode.value},
        )
        db.commit()
        db.refresh(collab)

        append_membership(
            db,
            profile_id=actor_id,
            collab_id=collab.id,
            role=role_for(participation),
            status=MembershipStatus.active,
            participation=participation,
        )
        log_event(
            db,
            event_type=EVENT_MEMBERSHIP_JOINED,
            actor_type="user",
            actor_id=actor_id,
            target_type="membership",
            target_ids=[collab.id],
            request_id=request_id,
        )
        db.commit()

        sent: list[str] = []
        failed: list[str] = []
        if participation.is_private and invitees:
            sent, failed = _send_invites(db, collab, actor_id, invitees, participation, request_id)

        logger.info(
            "collab_joined",
            extra={"collab_id": collab.id, "template_id": template.id, "mode": participation.mode.value},
        )
        return {
            "success": True,
            "status": "created",
            "collab_id": collab.id,
            "participation_mode": participation.mode.value,
            "location": participation.location_value(),
            "invites_sent": sent,
            "invites_failed": failed,
        }


@service_tool
def leave_collaboration(
    actor_id: str,
    collab_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Remove the actor's active membership; the row is deleted, not flagged."""
    actor_id = _require_actor(actor_id)
    _validate_id(collab_id, "collab_id")

    db = DB.SessionLocal()
    try:
        rows = (
            db.query(CollabParticipant)
            .filter(
                CollabParticipant.profile_id == actor_id,
                CollabParticipant.collab_id == collab_id,
                CollabParticipant.status == MembershipStatus.active.value,
            )
            .all()
        )
        if not rows:
            raise NotFoundIssue(
                "Actor is not an active participant of this collaboration",
                resource="membership",
                resource_id=collab_id,
            )
        for row in rows:
            db.delete(row)
        log_event(
            db,
            event_type=EVENT_MEMBERSHIP_LEFT,
            actor_type="user",
            actor_id=actor_id,
            target_type="membership",
            target_ids=[collab_id],
            count_affected=len(rows),
            request_id=_request_id(context),
        )
        db.commit()
        logger.info("collab_left", extra={"collab_id": collab_id, "actor_id": actor_id})
        return {"success": True, "status": "left", "collab_id": collab_id}
    finally:
        db.close()


def _empty_buckets() -> dict:
    return {mode.value: [] for mode in ParticipationMode}


def membership_buckets(db, actor_id: str) -> dict:
    buckets = _empty_buckets()
    memberships = active_memberships(db, actor_id)
    if not memberships:
        return buckets
    role_by_collab: dict[str, str] = {}
    for membership in memberships:
        role_by_collab.setdefault(membership.collab_id, membership.role)
    collabs = (
        db.query(Collaboration)
        .filter(Collaboration.id.in_(role_by_collab.keys()))
        .order_by(Collaboration.created_at.asc())
        .all()
    )
    counts = count_active_participants(db, [collab.id for collab in collabs])
    for collab in collabs:
        participation = participation_from_metadata(collab.metadata_)
        if participation.mode == ParticipationMode.private:
            participants = [{"name": "You", "role": role_by_collab[collab.id]}]
            count = len(participants)
        else:
            participants = [
                {"name": item["name"], "role": item["role"]}
                for item in active_roster(db, collab.id)
            ]
            count = counts.get(collab.id, len(participants))
        payload = serialize_collaboration(collab, participant_count=count)
        payload["role"] = role_by_collab[collab.id]
        payload["participants"] = participants
        buckets[participation.mode.value].append(payload)
    return buckets


@service_tool
def list_memberships(actor_id: Optional[str]) -> dict:
    """Active collaborations of the actor bucketed by participation mode."""
    if not isinstance(actor_id, str) or not actor_id.strip():
        return {"success": True, "status": "anonymous", "collabs": _empty_buckets()}
    actor_id = _require_actor(actor_id)
    db = DB.SessionLocal()
    try:
        buckets = membership_buckets(db, actor_id)
        total = sum(len(items) for items in buckets.values())
        return {"success": True, "status": "found", "count": total, "collabs": buckets}
    finally:
        db.close()
