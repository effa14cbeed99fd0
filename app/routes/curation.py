"""
Curator aggregate and selection endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.deps import get_request_context, require_actor_id, service_response
from app.schemas import RandomSelectionRequest, SaveSelectionsRequest
from core.context import RequestContext
from core.services import curation as curation_service
from core.services import selections as selection_service


router = APIRouter(prefix="/curation")


@router.get("/{period_id}")
def curation_view(period_id: str, curator_id: str = Depends(require_actor_id)):
    return service_response(curation_service.aggregate(curator_id, period_id))


@router.get("/{period_id}/selections")
def get_selections(period_id: str, curator_id: str = Depends(require_actor_id)):
    return service_response(selection_service.get_selections(curator_id, period_id))


@router.put("/{period_id}/selections")
def save_selections(
    period_id: str,
    body: SaveSelectionsRequest,
    curator_id: str = Depends(require_actor_id),
    context: RequestContext = Depends(get_request_context),
):
    return service_response(
        selection_service.save_selections(
            curator_id,
            period_id,
            creator_ids=body.creator_ids,
            sponsor_ids=body.sponsor_ids,
            collab_ids=body.collab_ids,
            communications_included=body.communications_included,
            context=context,
        )
    )


# POST so a page reload never draws a new sample
@router.post("/{period_id}/random")
def random_selection(
    period_id: str,
    body: RandomSelectionRequest,
    curator_id: str = Depends(require_actor_id),
):
    return service_response(
        selection_service.resolve_random_selection(
            curator_id,
            period_id,
            cap=body.cap,
            category=body.category,
        )
    )
