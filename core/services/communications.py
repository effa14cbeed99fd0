"""
Curator inbox: short communications creators address to a curator per period.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, List

from sqlalchemy.exc import SQLAlchemyError

import core.config as config
from core.audit import log_event
from core.audit_constants import (
    EVENT_COMMUNICATION_SUBMITTED,
    EVENT_COMMUNICATION_WITHDRAWN,
    EVENT_COMMUNICATIONS_SELECTED,
)
from core.context import RequestContext
from core.db import DB
from core.errors import NotFoundIssue, PermissionDeniedIssue, ValidationIssue
from core.models import Communication, CommunicationNotification, Profile, Subscription
from core.services.memberships import display_names
from core.services.periods import require_current_period
from core.services.selections import eligible_random_candidates, sample_ids, _validate_random_args
from core.services.shared import (
    service_tool,
    logger,
    _isoformat,
    _require_actor,
    _validate_id,
    _validate_required_text,
    _validate_optional_text,
    _normalize_id_list,
    MAX_TEXT_LENGTH,
    MAX_TITLE_LENGTH,
    MAX_URL_LENGTH,
    MAX_SELECTION_ITEMS,
)
from core.validators import count_words

STATUS_DRAFT = "draft"
STATUS_SUBMITTED = "submitted"
SELECTION_METHODS = ("all", "random", "select")


def recipient_allows(db, sender_id: str, recipient_id: str) -> bool:
    """Public recipients accept anyone; private ones only active subscribers."""
    recipient = db.query(Profile).filter(Profile.id == recipient_id).first()
    if recipient is None:
        raise NotFoundIssue(f"Recipient not found: {recipient_id}", resource="profile", resource_id=recipient_id)
    if recipient.is_public:
        return True
    connection = (
        db.query(Subscription.id)
        .filter(
            Subscription.subscriber_id == sender_id,
            Subscription.creator_id == recipient_id,
            Subscription.status == "active",
        )
        .first()
    )
    return connection is not None


def serialize_communication(comm: Communication, names: Optional[dict] = None, include_body: bool = True) -> dict:
    names = names or {}
    payload = {
        "id": comm.id,
        "sender_id": comm.sender_id,
        "sender_name": names.get(comm.sender_id),
        "recipient_id": comm.recipient_id,
        "recipient_name": names.get(comm.recipient_id),
        "period_id": comm.period_id,
        "subject": comm.subject,
        "word_count": comm.word_count,
        "status": comm.status,
        "is_selected": bool(comm.is_selected),
        "selection_method": comm.selection_method,
        "created_at": _isoformat(comm.created_at),
        "updated_at": _isoformat(comm.updated_at),
    }
    if include_body:
        payload["content"] = comm.content
        payload["image_url"] = comm.image_url
    return payload


def _owned_communication(db, sender_id: str, communication_id: str) -> Communication:
    comm = db.query(Communication).filter(Communication.id == communication_id).first()
    if comm is None:
        raise NotFoundIssue(
            f"Communication not found: {communication_id}",
            resource="communication",
            resource_id=communication_id,
        )
    if comm.sender_id != sender_id:
        raise PermissionDeniedIssue("Only the sender may change this communication", reason="not_sender")
    return comm


def _require_status(comm: Communication, status: str) -> None:
    if comm.status != status:
        raise ValidationIssue(
            f"communication must be in status '{status}'",
            field="status",
            error_type="invalid_state",
        )


@service_tool
def can_communicate_with(sender_id: str, recipient_id: str) -> dict:
    sender_id = _require_actor(sender_id, "sender_id")
    _validate_id(recipient_id, "recipient_id")
    db = DB.SessionLocal()
    try:
        return {"success": True, "status": "checked", "allowed": recipient_allows(db, sender_id, recipient_id)}
    finally:
        db.close()


@service_tool
def save_communication(
    sender_id: str,
    recipient_id: str,
    subject: str,
    content: str,
    image_url: Optional[str] = None,
    communication_id: Optional[str] = None,
) -> dict:
    """
    Create a draft in the current period, or update one of the sender's drafts.

    Consent of the recipient is checked before anything is written.
    """
    sender_id = _require_actor(sender_id, "sender_id")
    _validate_id(recipient_id, "recipient_id")
    _validate_required_text(subject, "subject", MAX_TITLE_LENGTH)
    _validate_required_text(content, "content", MAX_TEXT_LENGTH)
    _validate_optional_text(image_url, "image_url", MAX_URL_LENGTH)
    if communication_id is not None:
        _validate_id(communication_id, "communication_id")
    word_count = count_words(content)
    if word_count > config.MAX_COMMUNICATION_WORDS:
        raise ValidationIssue(
            f"content exceeds the {config.MAX_COMMUNICATION_WORDS} word limit",
            field="content",
            error_type="max_words",
        )

    db = DB.SessionLocal()
    try:
        if not recipient_allows(db, sender_id, recipient_id):
            raise PermissionDeniedIssue(
                "The recipient only accepts communications from connected profiles",
                reason="recipient_not_connected",
            )
        period = require_current_period(db)

        if communication_id:
            comm = _owned_communication(db, sender_id, communication_id)
            _require_status(comm, STATUS_DRAFT)
            comm.recipient_id = recipient_id
            comm.subject = subject
            comm.content = content
            comm.image_url = image_url
            comm.word_count = word_count
            comm.period_id = period.id
            comm.updated_at = datetime.utcnow()
            status = "updated"
        else:
            comm = Communication(
                sender_id=sender_id,
                recipient_id=recipient_id,
                period_id=period.id,
                subject=subject,
                content=content,
                image_url=image_url,
                word_count=word_count,
                status=STATUS_DRAFT,
            )
            db.add(comm)
            status = "created"
        db.commit()
        db.refresh(comm)
        return {"success": True, "status": status, "communication": serialize_communication(comm)}
    finally:
        db.close()


@service_tool
def submit_communication(
    sender_id: str,
    communication_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Move a draft to submitted; the recipient notification is best-effort."""
    sender_id = _require_actor(sender_id, "sender_id")
    _validate_id(communication_id, "communication_id")
    db = DB.SessionLocal()
    try:
        comm = _owned_communication(db, sender_id, communication_id)
        _require_status(comm, STATUS_DRAFT)
        comm.status = STATUS_SUBMITTED
        comm.updated_at = datetime.utcnow()
        log_event(
            db,
            event_type=EVENT_COMMUNICATION_SUBMITTED,
            actor_type="user",
            actor_id=sender_id,
            target_type="communication",
            target_ids=[comm.id],
            request_id=context.request_id if context else None,
            metadata={"word_count": comm.word_count},
        )
        db.commit()
        db.refresh(comm)
        payload = serialize_communication(comm)

        notified = True
        try:
            db.add(CommunicationNotification(communication_id=comm.id, recipient_id=comm.recipient_id))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            notified = False
            logger.warning("communication_notification_failed", extra={"communication_id": communication_id})
        return {"success": True, "status": "submitted", "notified": notified, "communication": payload}
    finally:
        db.close()


@service_tool
def withdraw_communication(
    sender_id: str,
    communication_id: str,
    context: Optional[RequestContext] = None,
) -> dict:
    """Move a submitted communication back to draft."""
    sender_id = _require_actor(sender_id, "sender_id")
    _validate_id(communication_id, "communication_id")
    db = DB.SessionLocal()
    try:
        comm = _owned_communication(db, sender_id, communication_id)
        _require_status(comm, STATUS_SUBMITTED)
        comm.status = STATUS_DRAFT
        comm.is_selected = False
        comm.selection_method = None
        comm.updated_at = datetime.utcnow()
        log_event(
            db,
            event_type=EVENT_COMMUNICATION_WITHDRAWN,
            actor_type="user",
            actor_id=sender_id,
            target_type="communication",
            target_ids=[comm.id],
            request_id=context.request_id if context else None,
        )
        db.commit()
        db.refresh(comm)
        return {"success": True, "status": "withdrawn", "communication": serialize_communication(comm)}
    finally:
        db.close()


@service_tool
def delete_draft_communication(sender_id: str, communication_id: str) -> dict:
    sender_id = _require_actor(sender_id, "sender_id")
    _validate_id(communication_id, "communication_id")
    db = DB.SessionLocal()
    try:
        comm = _owned_communication(db, sender_id, communication_id)
        _require_status(comm, STATUS_DRAFT)
        (
            db.query(CommunicationNotification)
            .filter(CommunicationNotification.communication_id == comm.id)
            .delete(synchronize_session=False)
        )
        db.delete(comm)
        db.commit()
        return {"success": True, "status": "deleted", "communication_id": communication_id}
    finally:
        db.close()


def _list_sent(sender_id: str, status: str, order_column) -> dict:
    sender_id = _require_actor(sender_id, "sender_id")
    db = DB.SessionLocal()
    try:
        rows = (
            db.query(Communication)
            .filter(Communication.sender_id == sender_id, Communication.status == status)
            .order_by(order_column.desc())
            .all()
        )
        names = display_names(db, [row.recipient_id for row in rows])
        items = [serialize_communication(row, names, include_body=status == STATUS_DRAFT) for row in rows]
        return {"success": True, "status": "found", "count": len(items), "communications": items}
    finally:
        db.close()


@service_tool
def list_drafts(sender_id: str) -> dict:
    return _list_sent(sender_id, STATUS_DRAFT, Communication.updated_at)


@service_tool
def list_submitted(sender_id: str) -> dict:
    return _list_sent(sender_id, STATUS_SUBMITTED, Communication.created_at)


def received_communications(db, curator_id: str, period_id: str) -> list[dict]:
    rows = (
        db.query(Communication)
        .filter(
            Communication.recipient_id == curator_id,
            Communication.period_id == period_id,
            Communication.status == STATUS_SUBMITTED,
        )
        .order_by(Communication.created_at.asc())
        .all()
    )
    names = display_names(db, [row.sender_id for row in rows])
    return [serialize_communication(row, names, include_body=False) for row in rows]


@service_tool
def list_received(curator_id: str, period_id: str) -> dict:
    """Submitted communications addressed to the curator for a period."""
    curator_id = _require_actor(curator_id, "curator_id")
    _validate_id(period_id, "period_id")
    db = DB.SessionLocal()
    try:
        items = received_communications(db, curator_id, period_id)
        return {"success": True, "status": "found", "count": len(items), "communications": items}
    finally:
        db.close()


@service_tool
def communication_count(curator_id: str) -> dict:
    _validate_id(curator_id, "curator_id")
    db = DB.SessionLocal()
    try:
        period = require_current_period(db)
        count = (
            db.query(Communication)
            .filter(
                Communication.recipient_id == curator_id,
                Communication.period_id == period.id,
                Communication.status == STATUS_SUBMITTED,
            )
            .count()
        )
        return {"success": True, "status": "found", "period_id": period.id, "count": count}
    finally:
        db.close()


@service_tool
def select_communications(
    curator_id: str,
    period_id: str,
    method: str,
    communication_ids: Optional[List[str]] = None,
    cap: Optional[int] = None,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    Mark received communications as selected.

    `all` takes every eligible communication, `select` the given ids that are
    eligible, `random` draws a fresh sample of at most `cap`.
    """
    curator_id = _require_actor(curator_id, "curator_id")
    _validate_id(period_id, "period_id")
    if method not in SELECTION_METHODS:
        raise ValidationIssue(
            "method must be one of: all|random|select",
            field="method",
            error_type="invalid_value",
        )
    requested = _normalize_id_list(communication_ids, "communication_ids", MAX_SELECTION_ITEMS)
    if method == "random":
        cap = _validate_random_args(cap, "communications")

    db = DB.SessionLocal()
    try:
        eligible = eligible_random_candidates(db, curator_id, period_id, "communications")
        if method == "all":
            chosen = eligible
        elif method == "random":
            chosen = sample_ids(eligible, cap)
        else:
            eligible_set = set(eligible)
            chosen = [comm_id for comm_id in requested if comm_id in eligible_set]

        if chosen:
            (
                db.query(Communication)
                .filter(Communication.id.in_(chosen))
                .update(
                    {Communication.is_selected: True, Communication.selection_method: method},
                    synchronize_session=False,
                )
            )
            log_event(
                db,
                event_type=EVENT_COMMUNICATIONS_SELECTED,
                actor_type="curator",
                actor_id=curator_id,
                target_type="communication",
                target_ids=chosen,
                count_affected=len(chosen),
                request_id=context.request_id if context else None,
                metadata={"method": method},
            )
            db.commit()
        return {
            "success": True,
            "status": "selected",
            "method": method,
            "selected_ids": chosen,
            "count": len(chosen),
        }
    finally:
        db.close()
