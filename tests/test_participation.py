import os

import pytest

os.environ.setdefault("DB_BACKEND", "sqlite")

import core.config as config
from core.errors import ValidationIssue
from core.models import Collaboration
from core.participation import (
    CommunityParticipation,
    LocalParticipation,
    ParticipationMode,
    PrivateParticipation,
    TemplateType,
    build_participation,
    fallback_template_type,
    parse_mode,
    participation_from_metadata,
    participation_metadata,
)


def test_build_participation_variants():
    assert isinstance(build_participation("community"), CommunityParticipation)
    assert isinstance(build_participation(" Private "), PrivateParticipation)
    local = build_participation("local", "Austin")
    assert isinstance(local, LocalParticipation)
    assert local.location_value() == "Austin"
    assert participation_metadata(local) == {"participation_mode": "local", "location": "Austin"}


def test_local_participation_requires_location():
    with pytest.raises(ValidationIssue):
        build_participation("local", "  ")


def test_parse_mode_rejects_unknown():
    with pytest.raises(ValidationIssue) as excinfo:
        parse_mode("public")
    assert excinfo.value.field == "mode"


def test_participation_from_metadata_defaults_to_community():
    assert participation_from_metadata(None).mode == ParticipationMode.community
    assert participation_from_metadata({"participation_mode": "bogus"}).mode == ParticipationMode.community
    assert participation_from_metadata({"participation_mode": "private"}).is_private is True


def test_local_metadata_without_location_stays_local():
    legacy = participation_from_metadata({"participation_mode": "local"})
    assert isinstance(legacy, LocalParticipation)
    assert legacy.location_value() == config.DEFAULT_LOCATION

    blank = participation_from_metadata({"participation_mode": "local", "location": "  "})
    assert blank.location_value() == config.DEFAULT_LOCATION


def test_fallback_template_type():
    assert fallback_template_type("Urban Chains") == TemplateType.chain
    assert fallback_template_type("Theme of Light") == TemplateType.theme
    assert fallback_template_type("A Story in Six Frames") == TemplateType.narrative
    assert fallback_template_type(None) == TemplateType.narrative


def test_apply_participation_keeps_privacy_in_step():
    collab = Collaboration(title="t", created_by="u1", metadata_={"template_id": "tpl"})
    collab.apply_participation(PrivateParticipation())
    assert collab.is_private is True
    assert collab.metadata_["participation_mode"] == "private"
    assert collab.metadata_["template_id"] == "tpl"

    collab.apply_participation(CommunityParticipation())
    assert collab.is_private is False
    assert collab.participation_mode == "community"


def test_flush_derives_is_private_from_mode(db_session):
    collab = Collaboration(
        title="Direct write",
        created_by="u1",
        is_private=False,
        metadata_={"participation_mode": "private"},
    )
    db_session.add(collab)
    db_session.commit()
    db_session.refresh(collab)
    assert collab.is_private is True

    unflagged = Collaboration(title="No mode", created_by="u1", is_private=True, metadata_={})
    db_session.add(unflagged)
    db_session.commit()
    db_session.refresh(unflagged)
    assert unflagged.is_private is False
    assert unflagged.participation_mode == "community"
