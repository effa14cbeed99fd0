import os
import time
from concurrent.futures import ThreadPoolExecutor

os.environ.setdefault("DB_BACKEND", "sqlite")

from core.models import Collaboration
from core.services import lifecycle
from core.services import selections


SELECTION_SETS = [
    {"creator_ids": ["a1", "a2"], "sponsor_ids": ["s1"], "collab_ids": ["k1"]},
    {"creator_ids": ["b1"], "sponsor_ids": ["s2", "s3"], "collab_ids": []},
    {"creator_ids": ["c1", "c2", "c3"], "sponsor_ids": [], "collab_ids": ["k2", "k3"]},
    {"creator_ids": [], "sponsor_ids": ["s4"], "collab_ids": ["k4"]},
]


def test_concurrent_saves_never_mix_states(seed):
    period = seed.period()

    def _save(selection_set: dict) -> dict:
        return selections.save_selections("curator-1", period.id, **selection_set)

    with ThreadPoolExecutor(max_workers=4) as executor:
        results = list(executor.map(_save, SELECTION_SETS * 2))

    assert all(result["status"] == "saved" for result in results)

    final = selections.get_selections("curator-1", period.id)["selections"]
    final_set = {
        "creator_ids": final["creator_ids"],
        "sponsor_ids": final["sponsor_ids"],
        "collab_ids": final["collab_ids"],
    }
    assert final_set in SELECTION_SETS


def test_concurrent_joins_of_different_templates(seed):
    period = seed.period()
    templates = [
        seed.template(name=f"Template {index}", template_type="theme", period=period)
        for index in range(3)
    ]

    def _join(template_id: str) -> dict:
        return lifecycle.join_collaboration("user-1", template_id, mode="community")

    with ThreadPoolExecutor(max_workers=3) as executor:
        results = list(executor.map(_join, [template.id for template in templates]))

    assert all(result["status"] == "created" for result in results)
    assert lifecycle.list_memberships("user-1")["count"] == 3


def test_concurrent_joins_of_same_template_create_one_collab(seed, db_session, monkeypatch):
    period = seed.period()
    chains = seed.template(name="Urban Chains", period=period)
    original = lifecycle.find_prior_collaborations

    def slow_lookup(db, actor_id, template_id):
        prior = original(db, actor_id, template_id)
        time.sleep(0.2)
        return prior

    monkeypatch.setattr(lifecycle, "find_prior_collaborations", slow_lookup)

    def _join(_):
        return lifecycle.join_collaboration("user-1", chains.id, mode="community")

    with ThreadPoolExecutor(max_workers=2) as executor:
        results = list(executor.map(_join, range(2)))

    assert sorted(result["status"] for result in results) == ["already_joined", "created"]
    assert results[0]["collab_id"] == results[1]["collab_id"]
    db_session.expire_all()
    assert db_session.query(Collaboration).filter(Collaboration.created_by == "user-1").count() == 1
