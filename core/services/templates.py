"""
Template catalog and per-period availability.
"""

from __future__ import annotations

from typing import Iterable, Optional

from core.db import DB
from core.errors import NotFoundIssue
from core.models import CollabTemplate, Collaboration, PeriodTemplate
from core.participation import (
    ParticipationMode,
    TemplateType,
    fallback_template_type,
    participation_from_metadata,
)
from core.services.memberships import active_template_ids, count_active_participants
from core.services.periods import resolve_current_period
from core.services.shared import (
    service_tool,
    logger,
    _validate_id,
    _normalize_id_list,
    MAX_SELECTION_ITEMS,
)


def normalize_template_type(template: CollabTemplate) -> TemplateType:
    """Stored type when valid, otherwise the name-based fallback."""
    if template.type:
        try:
            return TemplateType(template.type)
        except ValueError:
            pass
    return fallback_template_type(template.name)


def serialize_template(template: CollabTemplate) -> dict:
    return {
        "id": template.id,
        "name": template.name,
        "display_text": template.display_text,
        "type": normalize_template_type(template).value,
        "phases": template.phases,
        "duration": template.duration,
        "requirements": template.requirements,
        "connection_rules": template.connection_rules,
        "internal_reference": template.internal_reference,
    }


def empty_template_groups() -> dict:
    return {template_type.value: [] for template_type in TemplateType}


def group_templates(templates: Iterable[CollabTemplate]) -> dict:
    groups = empty_template_groups()
    for template in sorted(templates, key=lambda item: (item.name or "").lower()):
        groups[normalize_template_type(template).value].append(serialize_template(template))
    return groups


def get_template(db, template_id: str) -> CollabTemplate:
    template = db.query(CollabTemplate).filter(CollabTemplate.id == template_id).first()
    if template is None:
        raise NotFoundIssue(f"Template not found: {template_id}", resource="template", resource_id=template_id)
    return template


def bound_template_ids(db, period_id: str) -> list[str]:
    rows = (
        db.query(PeriodTemplate.template_id)
        .filter(PeriodTemplate.period_id == period_id)
        .all()
    )
    return [row[0] for row in rows]


def available_template_groups(db, actor_id: Optional[str]) -> dict:
    period = resolve_current_period(db)
    if period is None:
        return empty_template_groups()
    bound_ids = bound_template_ids(db, period.id)
    if not bound_ids:
        return empty_template_groups()
    available_ids = set(bound_ids) - active_template_ids(db, actor_id)
    if not available_ids:
        return empty_template_groups()
    templates = db.query(CollabTemplate).filter(CollabTemplate.id.in_(available_ids)).all()
    return group_templates(templates)


def list_available_templates(actor_id: Optional[str]) -> dict:
    """
    Templates bound to the current period that the actor is not already active in.

    Never fails: anonymous callers, a missing period or a store error all
    degrade to empty groups.
    """
    if not isinstance(actor_id, str) or not actor_id.strip():
        return {"success": True, "status": "anonymous", "templates": empty_template_groups()}
    db = DB.SessionLocal()
    try:
        groups = available_template_groups(db, actor_id.strip())
        return {"success": True, "status": "found", "templates": groups}
    except Exception:
        logger.exception("available_templates_failed", extra={"actor_id": actor_id})
        return {"success": True, "status": "degraded", "templates": empty_template_groups()}
    finally:
        db.close()


@service_tool
def list_period_templates(period_id: str) -> dict:
    """Every template bound to a period, normalized and grouped by type."""
    _validate_id(period_id, "period_id")
    db = DB.SessionLocal()
    try:
        bound_ids = bound_template_ids(db, period_id)
        templates = []
        if bound_ids:
            templates = db.query(CollabTemplate).filter(CollabTemplate.id.in_(bound_ids)).all()
        return {
            "success": True,
            "status": "found",
            "period_id": period_id,
            "count": len(templates),
            "templates": group_templates(templates),
        }
    finally:
        db.close()


@service_tool
def template_participant_counts(template_ids: list[str], period_id: str) -> dict:
    """
    Active participants per template across the period's open collaborations.

    `participant_count` covers community and local collaborations,
    `local_participant_count` only local ones.
    """
    template_ids = _normalize_id_list(template_ids, "template_ids", MAX_SELECTION_ITEMS)
    _validate_id(period_id, "period_id")
    counts = {
        template_id: {"participant_count": 0, "local_participant_count": 0}
        for template_id in template_ids
    }
    if not template_ids:
        return {"success": True, "status": "found", "counts": counts}

    db = DB.SessionLocal()
    try:
        collabs = (
            db.query(Collaboration)
            .filter(
                Collaboration.period_id == period_id,
                Collaboration.is_private.is_(False),
            )
            .all()
        )
        relevant = {}
        for collab in collabs:
            template_id = collab.template_id
            if template_id in counts:
                relevant[collab.id] = (template_id, participation_from_metadata(collab.metadata_))
        per_collab = count_active_participants(db, relevant.keys())
        for collab_id, (template_id, participation) in relevant.items():
            active = per_collab.get(collab_id, 0)
            counts[template_id]["participant_count"] += active
            if participation.mode == ParticipationMode.local:
                counts[template_id]["local_participant_count"] += active
        return {"success": True, "status": "found", "counts": counts}
    finally:
        db.close()


@service_tool
def backfill_template_types() -> dict:
    """Persist a type on legacy templates stored without one."""
    db = DB.SessionLocal()
    try:
        templates = db.query(CollabTemplate).filter(CollabTemplate.type.is_(None)).all()
        # "narrative"/"story" names land in the narrative default as well
        for template in templates:
            template.type = fallback_template_type(template.name).value
        db.commit()
        if templates:
            logger.info("template_types_backfilled", extra={"updated": len(templates)})
        return {"success": True, "status": "updated", "updated": len(templates)}
    finally:
        db.close()
