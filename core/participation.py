"""
Participation modes and the collaboration metadata variants tied to them.

A collaboration's privacy is never stored independently of its mode: each
variant knows whether it is private, and `Collaboration.apply_participation`
writes `is_private` and `metadata.participation_mode` from the same value.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum as PyEnum
from typing import Optional, Union

import core.config as config
from core.errors import ValidationIssue


class ParticipationMode(str, PyEnum):
    community = "community"
    local = "local"
    private = "private"


class TemplateType(str, PyEnum):
    chain = "chain"
    theme = "theme"
    narrative = "narrative"


class MembershipRole(str, PyEnum):
    member = "member"
    organizer = "organizer"


class MembershipStatus(str, PyEnum):
    active = "active"
    invited = "invited"
    left = "left"


@dataclass(frozen=True)
class CommunityParticipation:
    mode = ParticipationMode.community
    is_private = False

    def location_value(self) -> Optional[str]:
        return None


@dataclass(frozen=True)
class LocalParticipation:
    location: str
    mode = ParticipationMode.local
    is_private = False

    def __post_init__(self):
        if not isinstance(self.location, str) or not self.location.strip():
            raise ValidationIssue(
                "location is required for local participation",
                field="location",
                error_type="required",
            )

    def location_value(self) -> Optional[str]:
        return self.location


@dataclass(frozen=True)
class PrivateParticipation:
    mode = ParticipationMode.private
    is_private = True

    def location_value(self) -> Optional[str]:
        return None


Participation = Union[CommunityParticipation, LocalParticipation, PrivateParticipation]


def parse_mode(value) -> ParticipationMode:
    if isinstance(value, ParticipationMode):
        return value
    if not isinstance(value, str):
        raise ValidationIssue("mode must be a string", field="mode", error_type="invalid_type")
    try:
        return ParticipationMode(value.strip().lower())
    except ValueError as exc:
        raise ValidationIssue(
            "mode must be one of: community|local|private",
            field="mode",
            error_type="invalid_value",
        ) from exc


def build_participation(mode, location: Optional[str] = None) -> Participation:
    mode = parse_mode(mode)
    if mode == ParticipationMode.private:
        return PrivateParticipation()
    if mode == ParticipationMode.local:
        return LocalParticipation(location=location or "")
    return CommunityParticipation()


def participation_from_metadata(metadata: Optional[dict]) -> Participation:
    """Read the variant stored in a collaboration's metadata (community if absent)."""
    metadata = metadata or {}
    raw_mode = metadata.get("participation_mode") or ParticipationMode.community.value
    try:
        mode = ParticipationMode(raw_mode)
    except ValueError:
        mode = ParticipationMode.community
    if mode == ParticipationMode.local:
        location = metadata.get("location")
        if isinstance(location, str) and location.strip():
            return LocalParticipation(location=location)
        # rows written before locations were recorded
        return LocalParticipation(location=config.DEFAULT_LOCATION)
    if mode == ParticipationMode.private:
        return PrivateParticipation()
    return CommunityParticipation()


def participation_metadata(participation: Participation) -> dict:
    return {
        "participation_mode": participation.mode.value,
        "location": participation.location_value(),
    }


def fallback_template_type(name: Optional[str]) -> TemplateType:
    lowered = (name or "").lower()
    if "chain" in lowered:
        return TemplateType.chain
    if "theme" in lowered:
        return TemplateType.theme
    return TemplateType.narrative


__all__ = [
    "ParticipationMode",
    "TemplateType",
    "MembershipRole",
    "MembershipStatus",
    "CommunityParticipation",
    "LocalParticipation",
    "PrivateParticipation",
    "Participation",
    "parse_mode",
    "build_participation",
    "participation_from_metadata",
    "participation_metadata",
    "fallback_template_type",
]
