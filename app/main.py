"""
Standalone FastAPI app wiring for CollabGate.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from core.db import DB, init_db
from app.middleware import configure_middleware
from app.routes.activity import router as activity_router
from app.routes.collabs import router as collabs_router
from app.routes.communications import router as communications_router
from app.routes.curation import router as curation_router
from app.routes.health import router as health_router
from app.routes.root import router as root_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize on startup, cleanup on shutdown."""
    init_db()
    try:
        yield
    finally:
        if DB.engine:
            DB.engine.dispose()


app = FastAPI(title="CollabGate", redirect_slashes=False, lifespan=lifespan)
configure_middleware(app)

# Health and root endpoints
app.include_router(health_router)
app.include_router(root_router)

# Domain endpoints
app.include_router(collabs_router)
app.include_router(curation_router)
app.include_router(communications_router)
app.include_router(activity_router)
