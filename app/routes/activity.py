"""
Actor activity endpoint backed by the audit trail.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.deps import require_actor_id, service_response
from core.services import activity as activity_service


router = APIRouter()


@router.get("/activity")
def my_activity(
    event_type: Optional[str] = None,
    limit: Optional[int] = Query(None, ge=1),
    cursor: Optional[str] = None,
    actor_id: str = Depends(require_actor_id),
):
    return service_response(
        activity_service.list_activity(actor_id, event_type=event_type, limit=limit, cursor=cursor)
    )
