"""
Curator selection engine.

Each category is replaced independently (delete, then insert) so one failed
category never blocks the others. Saves for the same (curator, period) pair
are serialized so a concurrent save can not delete rows another save just
inserted.
"""

from __future__ import annotations

import random
from typing import Optional, List

from sqlalchemy.exc import SQLAlchemyError

import core.config as config
from core.audit import log_event
from core.audit_constants import EVENT_SELECTIONS_SAVED
from core.context import RequestContext
from core.db import DB
from core.errors import NotFoundIssue, ValidationIssue
from core.models import (
    Communication,
    CuratorCommunicationSelection,
    Period,
    SELECTION_MODELS,
)
from core.services.collabs import open_period_collaborations
from core.services.locking import serialized_session
from core.services.shared import (
    service_tool,
    logger,
    _require_actor,
    _validate_id,
    _validate_limit,
    _normalize_id_list,
    MAX_SELECTION_ITEMS,
)

CATEGORY_ORDER = ("creators", "sponsors", "collaborations", "communications")
RANDOM_CATEGORIES = ("communications", "collaborations")


def _delete_category(db, category: str, curator_id: str, period_id: str) -> int:
    if category == "communications":
        model = CuratorCommunicationSelection
    else:
        model, _ = SELECTION_MODELS[category]
    deleted = (
        db.query(model)
        .filter(model.curator_id == curator_id, model.period_id == period_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def _insert_category(db, category: str, curator_id: str, period_id: str, values) -> int:
    if category == "communications":
        db.add(
            CuratorCommunicationSelection(
                curator_id=curator_id,
                period_id=period_id,
                include_communications=bool(values),
            )
        )
        db.commit()
        return 1
    if not values:
        return 0
    model, column = SELECTION_MODELS[category]
    for target_id in values:
        db.add(model(curator_id=curator_id, period_id=period_id, **{column: target_id}))
    db.commit()
    return len(values)


def _replace_category(db, category: str, curator_id: str, period_id: str, values) -> Optional[dict]:
    """Replace one category; returns a failure record or None."""
    try:
        _delete_category(db, category, curator_id, period_id)
    except SQLAlchemyError:
        db.rollback()
        logger.exception(
            "selection_category_failed",
            extra={"category": category, "stage": "delete", "period_id": period_id},
        )
        return {"category": category, "stage": "delete"}
    try:
        _insert_category(db, category, curator_id, period_id, values)
    except SQLAlchemyError:
        db.rollback()
        # delete already committed: the category stays empty for the period
        logger.exception(
            "selection_category_failed",
            extra={"category": category, "stage": "insert", "period_id": period_id},
        )
        return {"category": category, "stage": "insert"}
    return None


def load_selections(db, curator_id: str, period_id: str) -> dict:
    state = {}
    for category, key in (("creators", "creator_ids"), ("sponsors", "sponsor_ids"), ("collaborations", "collab_ids")):
        model, column = SELECTION_MODELS[category]
        rows = (
            db.query(getattr(model, column))
            .filter(model.curator_id == curator_id, model.period_id == period_id)
            .order_by(model.id.asc())
            .all()
        )
        state[key] = [row[0] for row in rows if row[0]]
    flag = (
        db.query(CuratorCommunicationSelection.include_communications)
        .filter(
            CuratorCommunicationSelection.curator_id == curator_id,
            CuratorCommunicationSelection.period_id == period_id,
        )
        .first()
    )
    state["include_communications"] = bool(flag[0]) if flag else False
    return state


def empty_selections() -> dict:
    return {"creator_ids": [], "sponsor_ids": [], "collab_ids": [], "include_communications": False}


@service_tool
def save_selections(
    curator_id: str,
    period_id: str,
    creator_ids: Optional[List[str]] = None,
    sponsor_ids: Optional[List[str]] = None,
    collab_ids: Optional[List[str]] = None,
    communications_included: bool = False,
    context: Optional[RequestContext] = None,
) -> dict:
    """
    Replace the curator's selections for a period, one category at a time.

    Returns:
        success with the saved counts, or status partial_failure naming the
        categories that could not be written
    """
    curator_id = _require_actor(curator_id, "curator_id")
    _validate_id(period_id, "period_id")
    if not isinstance(communications_included, bool):
        raise ValidationIssue(
            "communications_included must be a boolean",
            field="communications_included",
            error_type="invalid_type",
        )
    values = {
        "creators": _normalize_id_list(creator_ids, "creator_ids", MAX_SELECTION_ITEMS),
        "sponsors": _normalize_id_list(sponsor_ids, "sponsor_ids", MAX_SELECTION_ITEMS),
        "collaborations": _normalize_id_list(collab_ids, "collab_ids", MAX_SELECTION_ITEMS),
        "communications": communications_included,
    }

    with serialized_session("selections", curator_id, period_id) as db:
        if db.query(Period.id).filter(Period.id == period_id).first() is None:
            raise NotFoundIssue(f"Period not found: {period_id}", resource="period", resource_id=period_id)

        failures = []
        for category in CATEGORY_ORDER:
            failure = _replace_category(db, category, curator_id, period_id, values[category])
            if failure is not None:
                failures.append(failure)

        failed_names = {failure["category"] for failure in failures}
        counts = {
            "creators": len(values["creators"]),
            "sponsors": len(values["sponsors"]),
            "collaborations": len(values["collaborations"]),
            "communications": 1 if communications_included else 0,
        }
        try:
            log_event(
                db,
                event_type=EVENT_SELECTIONS_SAVED,
                actor_type="curator",
                actor_id=curator_id,
                target_type="selection",
                target_ids=[period_id],
                count_affected=sum(counts[name] for name in counts if name not in failed_names),
                request_id=context.request_id if context else None,
                metadata={"counts": counts, "failed_categories": sorted(failed_names)},
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning("selection_audit_failed", extra={"period_id": period_id})

    saved = [category for category in CATEGORY_ORDER if category not in failed_names]
    if failures:
        logger.warning(
            "selections_partially_saved",
            extra={"period_id": period_id, "failed_categories": sorted(failed_names)},
        )
        return {
            "success": False,
            "status": "partial_failure",
            "error_type": "partial_failure",
            "saved_categories": saved,
            "failed_categories": failures,
            "message": "Some selection categories could not be saved and are empty for this period",
        }
    return {
        "success": True,
        "status": "saved",
        "period_id": period_id,
        "saved_categories": saved,
        "counts": counts,
    }


@service_tool
def get_selections(curator_id: str, period_id: str) -> dict:
    """The curator's persisted selection state for a period."""
    curator_id = _require_actor(curator_id, "curator_id")
    _validate_id(period_id, "period_id")
    db = DB.SessionLocal()
    try:
        return {"success": True, "status": "found", "selections": load_selections(db, curator_id, period_id)}
    finally:
        db.close()


def eligible_random_candidates(db, curator_id: str, period_id: str, category: str) -> list[str]:
    if category == "collaborations":
        return [collab.id for collab in open_period_collaborations(db, period_id)]
    rows = (
        db.query(Communication.id)
        .filter(
            Communication.recipient_id == curator_id,
            Communication.period_id == period_id,
            Communication.status == "submitted",
        )
        .order_by(Communication.created_at.asc())
        .all()
    )
    return [row[0] for row in rows]


def sample_ids(candidates: list[str], cap: int) -> list[str]:
    """Uniform sample of at most `cap` ids; deliberately not reproducible."""
    shuffled = list(candidates)
    random.shuffle(shuffled)
    return shuffled[:cap]


def _validate_random_args(cap: Optional[int], category: str) -> int:
    if cap is None:
        cap = config.RANDOM_SELECTION_CAP
    _validate_limit(cap, "cap", config.MAX_RANDOM_SELECTION_CAP)
    if category not in RANDOM_CATEGORIES:
        raise ValidationIssue(
            "category must be one of: communications|collaborations",
            field="category",
            error_type="invalid_value",
        )
    return cap


@service_tool
def resolve_random_selection(
    curator_id: str,
    period_id: str,
    cap: Optional[int] = None,
    category: str = "communications",
) -> dict:
    """
    Draw a random subset of eligible items for the period.

    Every call draws a fresh sample and nothing is persisted; callers must
    only invoke it on an explicit curator request.
    """
    curator_id = _require_actor(curator_id, "curator_id")
    _validate_id(period_id, "period_id")
    cap = _validate_random_args(cap, category)
    db = DB.SessionLocal()
    try:
        candidates = eligible_random_candidates(db, curator_id, period_id, category)
        ids = sample_ids(candidates, cap)
        logger.info(
            "random_selection_drawn",
            extra={"category": category, "candidates": len(candidates), "drawn": len(ids)},
        )
        return {
            "success": True,
            "status": "sampled",
            "category": category,
            "cap": cap,
            "candidate_count": len(candidates),
            "ids": ids,
        }
    finally:
        db.close()
