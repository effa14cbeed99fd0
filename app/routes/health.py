"""
Health endpoint.
"""

from __future__ import annotations

import os

from fastapi import APIRouter, HTTPException
from sqlalchemy import text

from core.db import DB, _get_schema_revisions


router = APIRouter()


def _check_db_health(check_schema: bool = True) -> dict:
    if DB.engine is None:
        return {"ok": False, "error": "db_not_initialized"}

    try:
        with DB.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        return {"ok": False, "error": str(exc)}

    if not check_schema:
        return {"ok": True, "backend": DB.engine.dialect.name}

    current_rev, head_rev = _get_schema_revisions(DB.engine)
    schema_ok = head_rev is None or current_rev == head_rev
    return {
        "ok": schema_ok,
        "backend": DB.engine.dialect.name,
        "schema_revision": current_rev,
        "schema_expected": head_rev,
        "schema_up_to_date": schema_ok,
    }


@router.get("/health")
def health(schema: bool = True):
    """Health check endpoint."""
    db_health = _check_db_health(check_schema=schema)
    if not db_health.get("ok"):
        raise HTTPException(status_code=503, detail={"database": db_health})

    return {
        "status": "healthy",
        "service": "CollabGate",
        "version": "0.1.0",
        "instance_id": os.environ.get("COLLABGATE_INSTANCE_ID", "collabgate-1"),
        "database": db_health,
    }
