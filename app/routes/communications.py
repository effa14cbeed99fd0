"""
Communication draft, submission and curator inbox endpoints.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from app.deps import get_request_context, require_actor_id, service_response
from app.schemas import CommunicationDraft, SelectCommunicationsRequest
from core.context import RequestContext
from core.services import communications as communication_service


router = APIRouter(prefix="/communications")


@router.get("/can-send/{recipient_id}")
def can_send(recipient_id: str, actor_id: str = Depends(require_actor_id)):
    return service_response(communication_service.can_communicate_with(actor_id, recipient_id))


@router.post("")
def create_draft(body: CommunicationDraft, actor_id: str = Depends(require_actor_id)):
    return service_response(
        communication_service.save_communication(
            actor_id,
            body.recipient_id,
            body.subject,
            body.content,
            image_url=body.image_url,
        )
    )


@router.put("/{communication_id}")
def update_draft(
    communication_id: str,
    body: CommunicationDraft,
    actor_id: str = Depends(require_actor_id),
):
    return service_response(
        communication_service.save_communication(
            actor_id,
            body.recipient_id,
            body.subject,
            body.content,
            image_url=body.image_url,
            communication_id=communication_id,
        )
    )


@router.post("/{communication_id}/submit")
def submit(
    communication_id: str,
    actor_id: str = Depends(require_actor_id),
    context: RequestContext = Depends(get_request_context),
):
    return service_response(communication_service.submit_communication(actor_id, communication_id, context=context))


@router.post("/{communication_id}/withdraw")
def withdraw(
    communication_id: str,
    actor_id: str = Depends(require_actor_id),
    context: RequestContext = Depends(get_request_context),
):
    return service_response(communication_service.withdraw_communication(actor_id, communication_id, context=context))


@router.delete("/{communication_id}")
def delete_draft(communication_id: str, actor_id: str = Depends(require_actor_id)):
    return service_response(communication_service.delete_draft_communication(actor_id, communication_id))


@router.get("/drafts")
def drafts(actor_id: str = Depends(require_actor_id)):
    return service_response(communication_service.list_drafts(actor_id))


@router.get("/submitted")
def submitted(actor_id: str = Depends(require_actor_id)):
    return service_response(communication_service.list_submitted(actor_id))


@router.get("/received/{period_id}")
def received(period_id: str, actor_id: str = Depends(require_actor_id)):
    return service_response(communication_service.list_received(actor_id, period_id))


@router.get("/count")
def count(curator_id: Optional[str] = None, actor_id: str = Depends(require_actor_id)):
    return service_response(communication_service.communication_count(curator_id or actor_id))


@router.post("/received/{period_id}/select")
def select(
    period_id: str,
    body: SelectCommunicationsRequest,
    actor_id: str = Depends(require_actor_id),
    context: RequestContext = Depends(get_request_context),
):
    return service_response(
        communication_service.select_communications(
            actor_id,
            period_id,
            body.method,
            communication_ids=body.communication_ids,
            cap=body.cap,
            context=context,
        )
    )
