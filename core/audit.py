"""
Metadata-only audit trail for lifecycle, selection and communication writes.

Events never carry user-authored text. Metadata keys that name a message body,
subject, bio or similar field are refused before anything reaches the session,
and events are committed together with the write they describe.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import and_, or_

from core.models import AuditEvent

ACTOR_TYPES = frozenset({"user", "curator", "system"})
TARGET_TYPES = frozenset({"collaboration", "membership", "selection", "communication"})

# matched as substrings, so "message_body" and "bio_text" are refused too
CONTENT_KEY_TOKENS = ("content", "subject", "body", "message", "image_url", "bio")
MAX_METADATA_STRING_LENGTH = 500
MAX_TARGET_ID_LENGTH = 200


def _is_content_key(key: str) -> bool:
    normalized = key.strip().lower().replace("-", "_")
    return any(token in normalized for token in CONTENT_KEY_TOKENS)


def _check_metadata(value: Any, path: str = "metadata") -> None:
    if isinstance(value, dict):
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValueError(f"{path}: keys must be strings")
            if _is_content_key(key):
                raise ValueError(f"{path}.{key}: content fields are not recorded")
            _check_metadata(item, f"{path}.{key}")
    elif isinstance(value, (list, tuple)):
        for index, item in enumerate(value):
            _check_metadata(item, f"{path}[{index}]")
    elif isinstance(value, str) and len(value) > MAX_METADATA_STRING_LENGTH:
        raise ValueError(f"{path}: value too long")


def _check_target_ids(target_ids: Any) -> list:
    if not isinstance(target_ids, (list, tuple)):
        raise ValueError("target_ids must be a list")
    for item in target_ids:
        if isinstance(item, bool) or not isinstance(item, (str, int)):
            raise ValueError("target_ids must contain strings or integers")
        if isinstance(item, str) and len(item) > MAX_TARGET_ID_LENGTH:
            raise ValueError("target_id value too long")
    return list(target_ids)


def log_event(
    db,
    *,
    event_type: str,
    actor_type: str,
    actor_id: Optional[str] = None,
    target_type: str,
    target_ids: list[Any],
    count_affected: Optional[int] = None,
    reason: Optional[str] = None,
    request_id: Optional[str] = None,
    metadata: Optional[dict] = None,
) -> AuditEvent:
    """Add an event to the caller's session; the caller commits it with its own write."""
    if not isinstance(event_type, str) or not event_type:
        raise ValueError("event_type must be a non-empty string")
    if actor_type not in ACTOR_TYPES:
        raise ValueError("actor_type must be one of: " + "|".join(sorted(ACTOR_TYPES)))
    if target_type not in TARGET_TYPES:
        raise ValueError("target_type must be one of: " + "|".join(sorted(TARGET_TYPES)))
    ids = _check_target_ids(target_ids)
    if metadata is not None:
        if not isinstance(metadata, dict):
            raise ValueError("metadata must be a dict")
        _check_metadata(metadata)

    event = AuditEvent(
        created_at=datetime.utcnow(),
        event_type=event_type,
        actor_type=actor_type,
        actor_id=actor_id,
        target_type=target_type,
        target_ids=ids,
        count_affected=count_affected,
        reason=reason,
        request_id=request_id,
        metadata_=metadata,
    )
    db.add(event)
    return event


def serialize_event(event: AuditEvent) -> dict:
    return {
        "event_id": str(event.event_id),
        "created_at": event.created_at.isoformat() if event.created_at else None,
        "event_type": event.event_type,
        "actor_type": event.actor_type,
        "target_type": event.target_type,
        "target_ids": event.target_ids,
        "count_affected": event.count_affected,
        "request_id": event.request_id,
        "metadata": event.metadata_,
    }


def actor_events(
    db,
    actor_id: str,
    *,
    limit: int,
    event_type: Optional[str] = None,
    after: Optional[AuditEvent] = None,
) -> tuple[list[AuditEvent], bool]:
    """
    One page of the actor's events, newest first.

    `after` is the last event of the previous page. The flag reports whether
    older events remain.
    """
    query = db.query(AuditEvent).filter(AuditEvent.actor_id == actor_id)
    if event_type:
        query = query.filter(AuditEvent.event_type == event_type)
    if after is not None:
        query = query.filter(
            or_(
                AuditEvent.created_at < after.created_at,
                and_(
                    AuditEvent.created_at == after.created_at,
                    AuditEvent.event_id < after.event_id,
                ),
            )
        )
    rows = (
        query.order_by(AuditEvent.created_at.desc(), AuditEvent.event_id.desc())
        .limit(limit + 1)
        .all()
    )
    return rows[:limit], len(rows) > limit


def find_actor_event(db, actor_id: str, event_id: str) -> Optional[AuditEvent]:
    return (
        db.query(AuditEvent)
        .filter(AuditEvent.event_id == event_id, AuditEvent.actor_id == actor_id)
        .first()
    )


__all__ = [
    "AuditEvent",
    "log_event",
    "serialize_event",
    "actor_events",
    "find_actor_event",
    "ACTOR_TYPES",
    "TARGET_TYPES",
]
