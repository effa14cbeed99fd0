import os

os.environ.setdefault("DB_BACKEND", "sqlite")

from core.models import CollabTemplate
from core.services import lifecycle
from core.services import templates as template_service


def _names(groups, template_type):
    return [item["name"] for item in groups[template_type]]


def test_anonymous_gets_empty_groups(server_db):
    result = template_service.list_available_templates(None)
    assert result["success"] is True
    assert result["status"] == "anonymous"
    assert result["templates"] == {"chain": [], "theme": [], "narrative": []}


def test_no_current_period_gives_empty_groups(seed):
    seed.template(name="Urban Chains")
    result = template_service.list_available_templates("user-1")
    assert result["status"] == "found"
    assert result["templates"] == {"chain": [], "theme": [], "narrative": []}


def test_available_templates_grouped_and_normalized(seed):
    period = seed.period()
    seed.template(name="Urban Chains", template_type="chain", period=period)
    seed.template(name="Theme of Light", template_type=None, period=period)
    seed.template(name="Six Frames", template_type="narrative", period=period)
    seed.template(name="Unbound Chain", template_type="chain")

    result = template_service.list_available_templates("user-1")
    groups = result["templates"]
    assert _names(groups, "chain") == ["Urban Chains"]
    assert _names(groups, "theme") == ["Theme of Light"]
    assert groups["theme"][0]["type"] == "theme"
    assert _names(groups, "narrative") == ["Six Frames"]


def test_joined_template_is_no_longer_available(seed):
    period = seed.period()
    chains = seed.template(name="Urban Chains", period=period)
    seed.template(name="Theme of Light", template_type="theme", period=period)

    joined = lifecycle.join_collaboration("user-1", chains.id, mode="community")
    assert joined["status"] == "created"

    groups = template_service.list_available_templates("user-1")["templates"]
    assert _names(groups, "chain") == []
    assert _names(groups, "theme") == ["Theme of Light"]

    other = template_service.list_available_templates("user-2")["templates"]
    assert _names(other, "chain") == ["Urban Chains"]


def test_store_error_degrades_to_empty(seed, monkeypatch):
    seed.period()

    def boom(db, actor_id):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(template_service, "available_template_groups", boom)
    result = template_service.list_available_templates("user-1")
    assert result["success"] is True
    assert result["status"] == "degraded"
    assert result["templates"] == {"chain": [], "theme": [], "narrative": []}


def test_period_templates_listing(seed):
    period = seed.period()
    seed.template(name="Urban Chains", period=period)
    seed.template(name="Other Period", template_type="theme")

    result = template_service.list_period_templates(period.id)
    assert result["success"] is True
    assert result["count"] == 1
    assert _names(result["templates"], "chain") == ["Urban Chains"]


def test_template_participant_counts(seed):
    period = seed.period()
    chains = seed.template(name="Urban Chains", period=period)
    austin = seed.profile(first_name="Ann", city="Austin")

    lifecycle.join_collaboration(austin.id, chains.id, mode="local")
    lifecycle.join_collaboration("user-2", chains.id, mode="community")
    lifecycle.join_collaboration("user-3", chains.id, mode="private")

    result = template_service.template_participant_counts([chains.id, "missing"], period.id)
    assert result["success"] is True
    assert result["counts"][chains.id] == {"participant_count": 2, "local_participant_count": 1}
    assert result["counts"]["missing"] == {"participant_count": 0, "local_participant_count": 0}


def test_backfill_template_types(seed, db_session):
    seed.template(name="Theme of Light", template_type=None)
    seed.template(name="Long Story", template_type=None)
    seed.template(name="Urban Chains", template_type="chain")

    result = template_service.backfill_template_types()
    assert result == {"success": True, "status": "updated", "updated": 2}

    db_session.expire_all()
    types = {row.name: row.type for row in db_session.query(CollabTemplate).all()}
    assert types == {"Theme of Light": "theme", "Long Story": "narrative", "Urban Chains": "chain"}


def test_template_reappears_after_leave(seed):
    period = seed.period()
    chains = seed.template(name="Urban Chains", period=period)

    joined = lifecycle.join_collaboration("user-1", chains.id)
    assert _names(template_service.list_available_templates("user-1")["templates"], "chain") == []

    lifecycle.leave_collaboration("user-1", joined["collab_id"])
    assert _names(template_service.list_available_templates("user-1")["templates"], "chain") == ["Urban Chains"]
