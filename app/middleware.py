"""
HTTP middleware for the CollabGate API.
"""

from __future__ import annotations

from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware

import core.config as config

# identity and correlation travel in headers, so browsers must be allowed to send them
API_HEADERS = ["Content-Type", "X-Actor-Id", "X-Request-Id"]


def configure_middleware(app) -> None:
    """Install the host allowlist and CORS for the origins listed in config."""
    if config.TRUSTED_HOSTS:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=config.TRUSTED_HOSTS)

    origins = config.CORS_ALLOWED_ORIGINS
    if not origins:
        return
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=API_HEADERS,
        expose_headers=["X-Request-Id"],
    )
