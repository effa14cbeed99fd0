"""
Actor-scoped activity listing over the audit trail.
"""

from __future__ import annotations

from typing import Optional

import core.config as config
from core.audit import actor_events, find_actor_event, serialize_event
from core.audit_constants import EVENT_TYPES
from core.db import DB
from core.errors import ValidationIssue
from core.services.shared import (
    service_tool,
    _require_actor,
    _validate_id,
    _validate_limit,
)


@service_tool
def list_activity(
    actor_id: str,
    event_type: Optional[str] = None,
    limit: Optional[int] = None,
    cursor: Optional[str] = None,
) -> dict:
    """
    The actor's own audit events, newest first.

    Args:
        actor_id: Profile or curator whose events are listed
        event_type: Optional canonical event type filter
        limit: Page size
        cursor: `next_cursor` of the previous page

    Returns:
        Events with `next_cursor`, which is None on the last page
    """
    actor_id = _require_actor(actor_id)
    if event_type is not None and event_type not in EVENT_TYPES:
        raise ValidationIssue(
            f"unknown event_type: {event_type}",
            field="event_type",
            error_type="invalid_value",
        )
    if limit is None:
        limit = config.ACTIVITY_PAGE_SIZE
    _validate_limit(limit, "limit", config.MAX_ACTIVITY_PAGE_SIZE)
    if cursor is not None:
        _validate_id(cursor, "cursor")

    db = DB.SessionLocal()
    try:
        after = None
        if cursor is not None:
            after = find_actor_event(db, actor_id, cursor)
            if after is None:
                raise ValidationIssue("cursor does not match this listing", field="cursor", error_type="invalid_value")
        events, more = actor_events(db, actor_id, limit=limit, event_type=event_type, after=after)
        return {
            "success": True,
            "status": "found",
            "count": len(events),
            "events": [serialize_event(event) for event in events],
            "next_cursor": str(events[-1].event_id) if more and events else None,
        }
    finally:
        db.close()
