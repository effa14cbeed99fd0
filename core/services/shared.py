"""
Shared helpers and configuration for collaboration and curation services.
"""

from __future__ import annotations

from functools import wraps
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

import core.config as config
from core.errors import NotFoundIssue, PermissionDeniedIssue, ValidationIssue
from core.validators import (
    validate_required_text as _validate_required_text,
    validate_optional_text as _validate_optional_text,
    validate_id as _validate_id,
    validate_limit as _validate_limit,
    normalize_id_list as _normalize_id_list,
)

# =============================================================================
# Configuration
# =============================================================================

logger = config.logger

MAX_TEXT_LENGTH = config.MAX_TEXT_LENGTH
MAX_TITLE_LENGTH = config.MAX_TITLE_LENGTH
MAX_URL_LENGTH = config.MAX_URL_LENGTH
MAX_INVITEES = config.MAX_INVITEES
MAX_SELECTION_ITEMS = config.MAX_SELECTION_ITEMS


# =============================================================================
# Helper Functions
# =============================================================================

def _tool_error_payload(tool_name: str, exc: ValidationIssue) -> dict:
    return {
        "success": False,
        "status": "error",
        "error_type": "validation_error",
        "tool": tool_name,
        "field": exc.field,
        "message": str(exc),
    }


def _not_found_payload(tool_name: str, exc: NotFoundIssue) -> dict:
    return {
        "success": False,
        "status": "error",
        "error_type": "not_found",
        "tool": tool_name,
        "resource": exc.resource,
        "resource_id": exc.resource_id,
        "message": str(exc),
    }


def _permission_payload(tool_name: str, exc: PermissionDeniedIssue) -> dict:
    return {
        "success": False,
        "status": "error",
        "error_type": "permission_denied",
        "tool": tool_name,
        "reason": exc.reason,
        "message": str(exc),
    }


def _log_validation_issue(tool_name: str, exc: ValidationIssue, warn: bool = False) -> None:
    payload = {
        "tool": tool_name,
        "field": exc.field,
        "error_type": exc.error_type,
        "detail": str(exc),
    }
    if warn:
        logger.warning("tool_validation_error", extra=payload)
    else:
        logger.info("tool_validation_error", extra=payload)


def _tool_error_handler(fn: Callable[..., dict]) -> Callable[..., dict]:
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except ValidationIssue as exc:
            _log_validation_issue(fn.__name__, exc, warn=False)
            return _tool_error_payload(fn.__name__, exc)
        except NotFoundIssue as exc:
            logger.info(
                "tool_not_found",
                extra={"tool": fn.__name__, "resource": exc.resource, "resource_id": exc.resource_id},
            )
            return _not_found_payload(fn.__name__, exc)
        except PermissionDeniedIssue as exc:
            logger.info("tool_permission_denied", extra={"tool": fn.__name__, "reason": exc.reason})
            return _permission_payload(fn.__name__, exc)
        except ValueError as exc:
            issue = ValidationIssue(str(exc), field="unknown", error_type="value_error")
            _log_validation_issue(fn.__name__, issue, warn=True)
            return _tool_error_payload(fn.__name__, issue)
        except SQLAlchemyError:
            logger.exception("tool_store_error", extra={"tool": fn.__name__})
            return {
                "success": False,
                "status": "error",
                "error_type": "store_error",
                "tool": fn.__name__,
                "message": "The data store rejected the operation",
            }
    return wrapper


def service_tool(fn: Callable[..., dict]) -> Callable[..., dict]:
    return _tool_error_handler(fn)


def _require_actor(actor_id: Optional[str], field: str = "actor_id") -> str:
    """Anonymous callers fail validation before any store access."""
    if not isinstance(actor_id, str) or not actor_id.strip():
        raise ValidationIssue(
            "an authenticated actor is required for this operation",
            field=field,
            error_type="required",
        )
    _validate_id(actor_id, field)
    return actor_id.strip()


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value is not None else None

