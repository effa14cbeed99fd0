"""
Period, template catalog and collaboration lifecycle endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.deps import get_request_context, require_actor_id, service_response
from app.schemas import JoinCollabRequest
from core.context import RequestContext, resolve_actor_id
from core.services import collabs as collab_service
from core.services import lifecycle as lifecycle_service
from core.services import memberships as membership_service
from core.services import periods as period_service
from core.services import templates as template_service


router = APIRouter()


@router.get("/periods/current")
def current_period():
    return service_response(period_service.get_current_period())


@router.get("/templates/available")
def available_templates(context: RequestContext = Depends(get_request_context)):
    return service_response(template_service.list_available_templates(resolve_actor_id(context)))


@router.post("/templates/backfill-types")
def backfill_template_types(actor_id: str = Depends(require_actor_id)):
    # operator maintenance; any identified caller may run it
    return service_response(template_service.backfill_template_types())


@router.get("/periods/{period_id}/templates")
def period_templates(period_id: str):
    return service_response(template_service.list_period_templates(period_id))


@router.get("/periods/{period_id}/templates/participant-counts")
def period_template_counts(period_id: str, template_ids: list[str] = Query(default=[])):
    return service_response(template_service.template_participant_counts(template_ids, period_id))


@router.post("/collabs/join")
def join_collab(
    body: JoinCollabRequest,
    actor_id: str = Depends(require_actor_id),
    context: RequestContext = Depends(get_request_context),
):
    return service_response(
        lifecycle_service.join_collaboration(
            actor_id,
            body.template_id,
            mode=body.mode,
            invitees=body.invitees,
            is_private=body.is_private,
            context=context,
        )
    )


@router.post("/collabs/{collab_id}/leave")
def leave_collab(
    collab_id: str,
    actor_id: str = Depends(require_actor_id),
    context: RequestContext = Depends(get_request_context),
):
    return service_response(lifecycle_service.leave_collaboration(actor_id, collab_id, context=context))


@router.get("/collabs/mine")
def my_collabs(actor_id: str = Depends(require_actor_id)):
    return service_response(lifecycle_service.list_memberships(actor_id))


@router.get("/collabs/local-cities")
def local_cities():
    return service_response(membership_service.list_local_cities())


@router.get("/collabs/participant-counts")
def collab_participant_counts(collab_ids: list[str] = Query(default=[])):
    return service_response(collab_service.participant_counts(collab_ids))


@router.get("/collabs/{collab_id}")
def collab_detail(collab_id: str, context: RequestContext = Depends(get_request_context)):
    return service_response(collab_service.get_collaboration(collab_id, resolve_actor_id(context)))
