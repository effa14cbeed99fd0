"""
Curation aggregator: everything a curator chooses from for one period.

Sub-collections are independent reads fanned out over a small thread pool,
each with its own session. A failing sub-fetch degrades to an empty value and
is named in `degraded`; it never fails the whole aggregate.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

import core.config as config
from core.db import DB
from core.errors import NotFoundIssue
from core.models import Campaign, Collaboration, Content, Period
from core.services.collabs import open_period_collaborations, serialize_collaboration
from core.services.communications import received_communications
from core.services.memberships import count_active_participants, joined_collab_ids
from core.services.periods import require_current_period, serialize_period
from core.services.selections import empty_selections, load_selections
from core.services.shared import service_tool, logger, _require_actor, _validate_id

CREATOR_TYPES = {
    "photo": ("Photographer", "Camera"),
    "art": ("Artist", "Palette"),
    "poetry": ("Poet", "Pen"),
    "essay": ("Writer", "BookOpen"),
    "music": ("Musician", "Music"),
}
DEFAULT_CREATOR_TYPE = ("Creator", "Camera")
DEFAULT_CAMPAIGN_DISCOUNT = 2


def creator_type_for(content_type: Optional[str]) -> tuple[str, str]:
    return CREATOR_TYPES.get(content_type or "", DEFAULT_CREATOR_TYPE)


def _fetch_creators(curator_id: str, period_id: str) -> list[dict]:
    db = DB.SessionLocal()
    try:
        rows = (
            db.query(Content)
            .filter(Content.period_id == period_id, Content.status == "published")
            .order_by(Content.created_at.asc())
            .all()
        )
        creators: dict[str, dict] = {}
        for content in rows:
            profile = content.creator
            entry = creators.get(content.creator_id)
            if entry is None:
                creator_type, icon = creator_type_for(content.type)
                entry = {
                    "id": content.creator_id,
                    "name": profile.display_name if profile else "User",
                    "first_name": (profile.first_name if profile else None) or "",
                    "last_name": (profile.last_name if profile else None) or "",
                    "bio": (profile.bio if profile else None) or "",
                    "avatar_url": profile.avatar_url if profile else None,
                    "is_private": bool(profile is not None and profile.is_public is False),
                    "content_type": content.type or "",
                    "creator_type": creator_type,
                    "icon": icon,
                    "last_post": "",
                    "tags": [],
                }
                creators[content.creator_id] = entry
            if content.entries and not entry["last_post"]:
                entry["last_post"] = content.entries[0].title or ""
            for content_entry in content.entries:
                for tag in content_entry.tags:
                    if tag.tag and tag.tag not in entry["tags"]:
                        entry["tags"].append(tag.tag)
        return list(creators.values())
    finally:
        db.close()


def _fetch_sponsors(curator_id: str, period_id: str) -> list[dict]:
    db = DB.SessionLocal()
    try:
        campaigns = (
            db.query(Campaign)
            .filter(Campaign.period_id == period_id, Campaign.is_active.is_(True))
            .order_by(Campaign.name.asc())
            .all()
        )
        return [
            {
                "id": campaign.id,
                "name": campaign.name or "",
                "bio": campaign.bio or "",
                "last_post": campaign.last_post or "",
                "avatar_url": campaign.avatar_url,
                "type": "ad",
                "discount": campaign.discount if isinstance(campaign.discount, int) else DEFAULT_CAMPAIGN_DISCOUNT,
            }
            for campaign in campaigns
        ]
    finally:
        db.close()


def _with_counts(db, collabs: list[Collaboration], is_joined: bool) -> list[dict]:
    counts = count_active_participants(db, [collab.id for collab in collabs])
    items = []
    for collab in collabs:
        payload = serialize_collaboration(collab, participant_count=counts.get(collab.id, 0))
        payload["is_joined"] = is_joined
        items.append(payload)
    return items


def _fetch_joined_collabs(curator_id: str, period_id: str) -> list[dict]:
    db = DB.SessionLocal()
    try:
        collab_ids = joined_collab_ids(db, curator_id)
        if not collab_ids:
            return []
        collabs = (
            db.query(Collaboration)
            .filter(Collaboration.id.in_(collab_ids))
            .order_by(Collaboration.created_at.asc())
            .all()
        )
        return _with_counts(db, collabs, is_joined=True)
    finally:
        db.close()


def _fetch_available_collabs(curator_id: str, period_id: str) -> list[dict]:
    db = DB.SessionLocal()
    try:
        joined = joined_collab_ids(db, curator_id)
        collabs = [collab for collab in open_period_collaborations(db, period_id) if collab.id not in joined]
        return _with_counts(db, collabs, is_joined=False)
    finally:
        db.close()


def _fetch_communications(curator_id: str, period_id: str) -> list[dict]:
    db = DB.SessionLocal()
    try:
        return received_communications(db, curator_id, period_id)
    finally:
        db.close()


def _fetch_selections(curator_id: str, period_id: str) -> dict:
    db = DB.SessionLocal()
    try:
        return load_selections(db, curator_id, period_id)
    finally:
        db.close()


SUBFETCHES: dict[str, tuple[Callable[[str, str], object], Callable[[], object]]] = {
    "creators": (_fetch_creators, list),
    "sponsors": (_fetch_sponsors, list),
    "joined_collabs": (_fetch_joined_collabs, list),
    "available_collabs": (_fetch_available_collabs, list),
    "communications": (_fetch_communications, list),
    "prior_selections": (_fetch_selections, empty_selections),
}


def _run_subfetch(name: str, curator_id: str, period_id: str):
    fetch, empty = SUBFETCHES[name]
    try:
        return name, fetch(curator_id, period_id), False
    except Exception:
        logger.exception("curation_subfetch_failed", extra={"subfetch": name, "period_id": period_id})
        return name, empty(), True


def _resolve_period(period_id: Optional[str]) -> dict:
    db = DB.SessionLocal()
    try:
        if period_id is None:
            return serialize_period(require_current_period(db))
        period = db.query(Period).filter(Period.id == period_id).first()
        if period is None:
            raise NotFoundIssue(f"Period not found: {period_id}", resource="period", resource_id=period_id)
        return serialize_period(period)
    finally:
        db.close()


@service_tool
def aggregate(curator_id: str, period_id: Optional[str] = None) -> dict:
    """
    Compose the curation view for a period (the current one when omitted).

    Returns:
        creators, sponsors, joined_collabs, available_collabs, communications
        and prior_selections, plus the names of any degraded sub-collections
    """
    curator_id = _require_actor(curator_id, "curator_id")
    if period_id is not None:
        _validate_id(period_id, "period_id")
    period = _resolve_period(period_id)

    names = list(SUBFETCHES)
    workers = min(config.CURATION_WORKERS, len(names))
    if workers > 1:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="curation") as executor:
            results = list(executor.map(lambda name: _run_subfetch(name, curator_id, period["id"]), names))
    else:
        results = [_run_subfetch(name, curator_id, period["id"]) for name in names]

    payload = {"success": True, "status": "found", "period": period}
    degraded = []
    for name, value, failed in results:
        payload[name] = value
        if failed:
            degraded.append(name)
    payload["degraded"] = degraded
    return payload
