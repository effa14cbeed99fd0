"""
Root endpoint with service metadata.
"""

from __future__ import annotations

from fastapi import APIRouter

import core.config as config


router = APIRouter()


@router.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "CollabGate",
        "version": "0.1.0",
        "description": "Collaboration lifecycle and curation selection engine",
        "default_location": config.DEFAULT_LOCATION,
        "random_selection_cap": config.RANDOM_SELECTION_CAP,
        "endpoints": {
            "health": "/health",
            "current_period": "/periods/current",
            "available_templates": "/templates/available",
            "collabs": {
                "join": "/collabs/join",
                "leave": "/collabs/{collab_id}/leave",
                "mine": "/collabs/mine",
                "detail": "/collabs/{collab_id}",
                "local_cities": "/collabs/local-cities",
            },
            "curation": {
                "aggregate": "/curation/{period_id}",
                "selections": "/curation/{period_id}/selections",
                "random": "/curation/{period_id}/random",
            },
            "communications": "/communications",
        },
    }
