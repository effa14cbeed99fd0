"""
Period registry: resolves the single current period from the periods table.
"""

from __future__ import annotations

from typing import Optional

from core.db import DB
from core.errors import NotFoundIssue
from core.models import Period
from core.services.shared import service_tool, logger, _isoformat


def resolve_current_period(db) -> Optional[Period]:
    """
    Return the active period with the latest end_date, or None.

    Evaluated on every call; nothing is cached between requests. More than one
    active row is a data-quality problem, logged and otherwise ignored.
    """
    rows = (
        db.query(Period)
        .filter(Period.is_active.is_(True))
        .order_by(Period.end_date.desc(), Period.id.asc())
        .limit(2)
        .all()
    )
    if not rows:
        return None
    if len(rows) > 1:
        active_count = db.query(Period).filter(Period.is_active.is_(True)).count()
        logger.warning(
            "multiple_active_periods",
            extra={"active_count": active_count, "chosen_period_id": rows[0].id},
        )
    return rows[0]


def require_current_period(db) -> Period:
    period = resolve_current_period(db)
    if period is None:
        raise NotFoundIssue("No active period is configured", resource="period")
    return period


def serialize_period(period: Period) -> dict:
    return {
        "id": period.id,
        "name": period.name,
        "season": period.season,
        "year": period.year,
        "start_date": _isoformat(period.start_date),
        "end_date": _isoformat(period.end_date),
        "is_active": bool(period.is_active),
    }


@service_tool
def get_current_period() -> dict:
    """Resolve the current period; `not_found` when none is configured."""
    db = DB.SessionLocal()
    try:
        period = require_current_period(db)
        return {"success": True, "status": "found", "period": serialize_period(period)}
    finally:
        db.close()
