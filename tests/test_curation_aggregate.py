import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import core.config as config
from core.services import curation
from core.services import lifecycle
from core.services import selections


def _populate(seed):
    period = seed.period()
    curator = seed.profile(first_name="Cora", last_name="Reed")
    creator = seed.profile(first_name="Pat", last_name="Lens", bio="Street photographer")
    poet = seed.profile(first_name="Quin", last_name="Verse", is_public=False)
    seed.content(creator, period, content_type="photo", title="Golden Hour", tags=("sunset", "city"))
    seed.content(creator, period, content_type="photo", title="Blue Hour", tags=("city",))
    seed.content(poet, period, content_type="poetry", title="Ode", tags=())
    seed.content(poet, period, content_type="essay", status="draft", title="Unpublished")
    seed.campaign(period, name="Lens Co", discount=5)
    seed.campaign(period, name="Retired", is_active=False)
    seed.communication(creator, curator, period)

    chains = seed.template(name="Urban Chains", period=period)
    theme = seed.template(name="Theme of Light", template_type="theme", period=period)
    joined = lifecycle.join_collaboration(curator.id, chains.id, mode="community")
    available = lifecycle.join_collaboration(creator.id, theme.id, mode="local")
    lifecycle.join_collaboration(poet.id, theme.id, mode="private")
    selections.save_selections(curator.id, period.id, creator_ids=[creator.id], communications_included=True)
    return {
        "period": period,
        "curator": curator,
        "creator": creator,
        "poet": poet,
        "joined": joined["collab_id"],
        "available": available["collab_id"],
    }


def test_aggregate_composes_every_collection(seed):
    data = _populate(seed)
    result = curation.aggregate(data["curator"].id, data["period"].id)
    assert result["success"] is True
    assert result["degraded"] == []
    assert result["period"]["id"] == data["period"].id

    creators = {item["id"]: item for item in result["creators"]}
    assert set(creators) == {data["creator"].id, data["poet"].id}
    photographer = creators[data["creator"].id]
    assert photographer["creator_type"] == "Photographer"
    assert photographer["icon"] == "Camera"
    assert photographer["last_post"] == "Golden Hour"
    assert photographer["tags"] == ["sunset", "city"]
    assert photographer["name"] == "Pat Lens"
    poet = creators[data["poet"].id]
    assert poet["creator_type"] == "Poet"
    assert poet["is_private"] is True

    assert [item["name"] for item in result["sponsors"]] == ["Lens Co"]
    assert result["sponsors"][0]["discount"] == 5
    assert result["sponsors"][0]["type"] == "ad"

    assert [item["id"] for item in result["joined_collabs"]] == [data["joined"]]
    assert result["joined_collabs"][0]["is_joined"] is True
    assert result["joined_collabs"][0]["participant_count"] == 1
    assert [item["id"] for item in result["available_collabs"]] == [data["available"]]
    assert result["available_collabs"][0]["is_joined"] is False

    assert len(result["communications"]) == 1
    assert result["prior_selections"]["creator_ids"] == [data["creator"].id]
    assert result["prior_selections"]["include_communications"] is True


def test_aggregate_defaults_to_current_period(seed):
    data = _populate(seed)
    result = curation.aggregate(data["curator"].id)
    assert result["period"]["id"] == data["period"].id


def test_failing_subfetch_degrades_only_itself(seed, monkeypatch):
    data = _populate(seed)

    def boom(curator_id, period_id):
        raise RuntimeError("sponsor store unavailable")

    monkeypatch.setitem(curation.SUBFETCHES, "sponsors", (boom, list))
    result = curation.aggregate(data["curator"].id, data["period"].id)
    assert result["success"] is True
    assert result["degraded"] == ["sponsors"]
    assert result["sponsors"] == []
    assert len(result["creators"]) == 2


def test_failing_selection_fetch_gives_empty_state(seed, monkeypatch):
    data = _populate(seed)

    def boom(curator_id, period_id):
        raise RuntimeError("selection store unavailable")

    monkeypatch.setitem(curation.SUBFETCHES, "prior_selections", (boom, selections.empty_selections))
    monkeypatch.setattr(config, "CURATION_WORKERS", 1)
    result = curation.aggregate(data["curator"].id, data["period"].id)
    assert result["degraded"] == ["prior_selections"]
    assert result["prior_selections"] == selections.empty_selections()


def test_aggregate_unknown_period_and_anonymous(seed):
    missing = curation.aggregate("curator-1", "period-missing")
    assert missing["error_type"] == "not_found"
    assert missing["resource"] == "period"

    no_current = curation.aggregate("curator-1")
    assert no_current["error_type"] == "not_found"

    anonymous = curation.aggregate(None)
    assert anonymous["error_type"] == "validation_error"


def test_creator_type_mapping():
    assert curation.creator_type_for("music") == ("Musician", "Music")
    assert curation.creator_type_for("sculpture") == curation.DEFAULT_CREATOR_TYPE
    assert curation.creator_type_for(None) == curation.DEFAULT_CREATOR_TYPE
