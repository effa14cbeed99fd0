import os

os.environ.setdefault("DB_BACKEND", "sqlite")

from sqlalchemy.exc import OperationalError

import core.config as config
from core.services import lifecycle
from core.services import selections
from core.services.locking import KeyedLock


def test_save_and_load_selections(seed):
    period = seed.period()
    result = selections.save_selections(
        "curator-1",
        period.id,
        creator_ids=["c1", "c2", "c1", " c3 "],
        sponsor_ids=["s1"],
        collab_ids=[],
        communications_included=True,
    )
    assert result["success"] is True
    assert result["status"] == "saved"
    assert result["counts"] == {"creators": 3, "sponsors": 1, "collaborations": 0, "communications": 1}

    loaded = selections.get_selections("curator-1", period.id)["selections"]
    assert loaded == {
        "creator_ids": ["c1", "c2", "c3"],
        "sponsor_ids": ["s1"],
        "collab_ids": [],
        "include_communications": True,
    }


def test_save_replaces_previous_state(seed):
    period = seed.period()
    selections.save_selections("curator-1", period.id, creator_ids=["c1", "c2"], sponsor_ids=["s1"])
    selections.save_selections("curator-1", period.id, creator_ids=["c3"], collab_ids=["k1"])

    loaded = selections.get_selections("curator-1", period.id)["selections"]
    assert loaded["creator_ids"] == ["c3"]
    assert loaded["sponsor_ids"] == []
    assert loaded["collab_ids"] == ["k1"]
    assert loaded["include_communications"] is False


def test_selections_are_scoped_per_curator_and_period(seed):
    spring = seed.period(name="Spring 2026")
    summer = seed.period(name="Summer 2026", is_active=False)
    selections.save_selections("curator-1", spring.id, creator_ids=["c1"])
    selections.save_selections("curator-2", spring.id, creator_ids=["c2"])
    selections.save_selections("curator-1", summer.id, creator_ids=["c3"])

    assert selections.get_selections("curator-1", spring.id)["selections"]["creator_ids"] == ["c1"]
    assert selections.get_selections("curator-2", spring.id)["selections"]["creator_ids"] == ["c2"]
    assert selections.get_selections("curator-1", summer.id)["selections"]["creator_ids"] == ["c3"]


def test_failed_insert_leaves_category_empty(seed, monkeypatch):
    period = seed.period()
    selections.save_selections("curator-1", period.id, creator_ids=["c1"], sponsor_ids=["s1", "s2"])
    original = selections._insert_category

    def failing(db, category, curator_id, period_id, values):
        if category == "sponsors":
            raise OperationalError("INSERT", {}, Exception("database is locked"))
        return original(db, category, curator_id, period_id, values)

    monkeypatch.setattr(selections, "_insert_category", failing)
    result = selections.save_selections(
        "curator-1",
        period.id,
        creator_ids=["c9"],
        sponsor_ids=["s3"],
        collab_ids=["k1"],
    )
    assert result["success"] is False
    assert result["status"] == "partial_failure"
    assert result["error_type"] == "partial_failure"
    assert result["failed_categories"] == [{"category": "sponsors", "stage": "insert"}]
    assert result["saved_categories"] == ["creators", "collaborations", "communications"]

    loaded = selections.get_selections("curator-1", period.id)["selections"]
    assert loaded["creator_ids"] == ["c9"]
    assert loaded["sponsor_ids"] == []
    assert loaded["collab_ids"] == ["k1"]


def test_failed_delete_keeps_previous_rows(seed, monkeypatch):
    period = seed.period()
    selections.save_selections("curator-1", period.id, creator_ids=["c1"])

    def failing(db, category, curator_id, period_id):
        raise OperationalError("DELETE", {}, Exception("database is locked"))

    monkeypatch.setattr(selections, "_delete_category", failing)
    result = selections.save_selections("curator-1", period.id, creator_ids=["c2"])
    assert result["status"] == "partial_failure"
    assert {item["stage"] for item in result["failed_categories"]} == {"delete"}
    assert len(result["failed_categories"]) == 4

    monkeypatch.undo()
    loaded = selections.get_selections("curator-1", period.id)["selections"]
    assert loaded["creator_ids"] == ["c1"]


def test_save_validation_and_missing_period(seed):
    anonymous = selections.save_selections("", "period-1")
    assert anonymous["error_type"] == "validation_error"
    assert anonymous["field"] == "curator_id"

    flag = selections.save_selections("curator-1", "period-1", communications_included="yes")
    assert flag["field"] == "communications_included"

    bad_list = selections.save_selections("curator-1", "period-1", creator_ids="c1")
    assert bad_list["field"] == "creator_ids"

    missing = selections.save_selections("curator-1", "period-missing", creator_ids=["c1"])
    assert missing["error_type"] == "not_found"
    assert missing["resource"] == "period"


def test_get_selections_defaults_to_empty(seed):
    period = seed.period()
    assert selections.get_selections("curator-1", period.id)["selections"] == selections.empty_selections()


def test_random_selection_of_communications(seed):
    period = seed.period()
    curator = seed.profile(first_name="Cur")
    senders = [seed.profile(first_name=f"Sender{index}") for index in range(5)]
    submitted = {seed.communication(sender, curator, period).id for sender in senders}
    seed.communication(senders[0], curator, period, status="draft")

    result = selections.resolve_random_selection(curator.id, period.id, cap=3)
    assert result["success"] is True
    assert result["candidate_count"] == 5
    assert result["cap"] == 3
    assert len(result["ids"]) == 3
    assert len(set(result["ids"])) == 3
    assert set(result["ids"]) <= submitted

    everything = selections.resolve_random_selection(curator.id, period.id, cap=50)
    assert set(everything["ids"]) == submitted


def test_random_selection_defaults_cap_and_persists_nothing(seed):
    period = seed.period()
    result = selections.resolve_random_selection("curator-1", period.id)
    assert result["cap"] == config.RANDOM_SELECTION_CAP
    assert result["ids"] == []
    assert selections.get_selections("curator-1", period.id)["selections"] == selections.empty_selections()


def test_random_selection_of_collaborations_skips_private(seed):
    period = seed.period()
    chains = seed.template(period=period)
    open_collab = lifecycle.join_collaboration("user-1", chains.id, mode="community")
    lifecycle.join_collaboration("user-2", chains.id, mode="private")

    result = selections.resolve_random_selection("curator-1", period.id, cap=5, category="collaborations")
    assert result["ids"] == [open_collab["collab_id"]]


def test_random_selection_validation(seed):
    period = seed.period()
    too_big = selections.resolve_random_selection("curator-1", period.id, cap=config.MAX_RANDOM_SELECTION_CAP + 1)
    assert too_big["error_type"] == "validation_error"
    assert too_big["field"] == "cap"

    zero = selections.resolve_random_selection("curator-1", period.id, cap=0)
    assert zero["field"] == "cap"

    category = selections.resolve_random_selection("curator-1", period.id, category="sponsors")
    assert category["field"] == "category"


def test_sample_ids_never_exceeds_cap_or_mutates_input():
    candidates = ["a", "b", "c", "d"]
    drawn = selections.sample_ids(candidates, 2)
    assert len(drawn) == 2
    assert set(drawn) <= set(candidates)
    assert candidates == ["a", "b", "c", "d"]
    assert sorted(selections.sample_ids(candidates, 10)) == candidates


def test_keyed_lock_releases_keys():
    lock = KeyedLock()
    with lock.hold(("curator-1", "period-1")):
        with lock.hold(("curator-1", "period-2")):
            assert len(lock._locks) == 2
    assert lock._locks == {}
