"""
Dependency helpers for the standalone FastAPI app.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException
from fastapi.responses import JSONResponse

from core.context import AuthContext, RequestContext, resolve_actor_id


ERROR_STATUS_CODES = {
    "validation_error": 400,
    "permission_denied": 403,
    "not_found": 404,
    "partial_failure": 207,
    "store_error": 503,
}


async def get_auth_context(
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
) -> AuthContext:
    if x_actor_id and x_actor_id.strip():
        return AuthContext(actor_id=x_actor_id.strip(), actor="user")
    return AuthContext(actor="anonymous")


async def get_request_context(
    auth: AuthContext = Depends(get_auth_context),
    x_request_id: Optional[str] = Header(default=None, alias="X-Request-Id"),
) -> RequestContext:
    return RequestContext(auth=auth, request_id=x_request_id, source="http")


async def require_actor_id(
    context: RequestContext = Depends(get_request_context),
) -> str:
    actor_id = resolve_actor_id(context)
    if not actor_id:
        raise HTTPException(status_code=401, detail="X-Actor-Id header is required")
    return actor_id


def service_response(result: dict):
    """Pass successful results through; map failures onto an HTTP status."""
    if result.get("success"):
        return result
    status_code = ERROR_STATUS_CODES.get(result.get("error_type"), 400)
    return JSONResponse(status_code=status_code, content=result)
