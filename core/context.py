"""
Request-scoped context objects for core services.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class AuthContext:
    actor_id: Optional[str] = None
    actor: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        return not self.actor_id


@dataclass(frozen=True)
class RequestContext:
    auth: AuthContext
    request_id: Optional[str] = None
    source: Optional[str] = None


def resolve_actor_id(context: Optional[RequestContext]) -> Optional[str]:
    """Return the current actor id, or None for an anonymous caller."""
    if context is None or context.auth is None:
        return None
    return context.auth.actor_id or None


__all__ = [
    "AuthContext",
    "RequestContext",
    "resolve_actor_id",
]
