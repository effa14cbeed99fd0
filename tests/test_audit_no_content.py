import os

import pytest

os.environ.setdefault("DB_BACKEND", "sqlite")

from core.audit import log_event
from core.audit_constants import (
    EVENT_COLLAB_CREATED,
    EVENT_COMMUNICATION_SUBMITTED,
    EVENT_MEMBERSHIP_JOINED,
    EVENT_SELECTIONS_SAVED,
)
from core.context import AuthContext, RequestContext
from core.models import AuditEvent
from core.services import activity
from core.services import communications as communication_service
from core.services import lifecycle
from core.services import selections


def test_audit_rejects_content_metadata(db_session):
    before = db_session.query(AuditEvent).count()
    with pytest.raises(ValueError):
        log_event(
            db_session,
            event_type=EVENT_COMMUNICATION_SUBMITTED,
            actor_type="user",
            target_type="communication",
            target_ids=["comm-1"],
            metadata={"subject": "should_not_log"},
        )
    db_session.rollback()
    after = db_session.query(AuditEvent).count()
    assert after == before


def test_audit_rejects_nested_content_keys(db_session):
    with pytest.raises(ValueError):
        log_event(
            db_session,
            event_type=EVENT_COMMUNICATION_SUBMITTED,
            actor_type="user",
            target_type="communication",
            target_ids=["comm-1"],
            metadata={"draft": {"message_body": "should_not_log"}},
        )
    db_session.rollback()


def test_audit_rejects_long_strings(db_session):
    before = db_session.query(AuditEvent).count()
    with pytest.raises(ValueError):
        log_event(
            db_session,
            event_type=EVENT_SELECTIONS_SAVED,
            actor_type="curator",
            target_type="selection",
            target_ids=["period-1"],
            metadata={"note": "x" * 600},
        )
    db_session.rollback()
    after = db_session.query(AuditEvent).count()
    assert after == before


def test_audit_rejects_unknown_types(db_session):
    with pytest.raises(ValueError):
        log_event(db_session, event_type="x", actor_type="robot", target_type="selection", target_ids=[])
    with pytest.raises(ValueError):
        log_event(db_session, event_type="x", actor_type="user", target_type="memory", target_ids=[])


def test_writes_record_metadata_only_events(seed):
    period = seed.period()
    chains = seed.template(period=period)
    sender = seed.profile(first_name="Sam")
    curator = seed.profile(first_name="Cora")
    context = RequestContext(auth=AuthContext(actor_id=sender.id, actor="user"), request_id="req-42")

    joined = lifecycle.join_collaboration(sender.id, chains.id, context=context)
    comm_id = communication_service.save_communication(
        sender.id, curator.id, "Private subject", "Private words here"
    )["communication"]["id"]
    communication_service.submit_communication(sender.id, comm_id, context=context)
    selections.save_selections(curator.id, period.id, creator_ids=[sender.id])

    sender_events = activity.list_activity(sender.id)["events"]
    by_type = {event["event_type"]: event for event in sender_events}
    assert by_type[EVENT_COLLAB_CREATED]["target_ids"] == [joined["collab_id"]]
    assert by_type[EVENT_COLLAB_CREATED]["request_id"] == "req-42"
    assert by_type[EVENT_MEMBERSHIP_JOINED]["actor_type"] == "user"
    assert by_type[EVENT_COMMUNICATION_SUBMITTED]["target_ids"] == [comm_id]
    assert EVENT_SELECTIONS_SAVED not in by_type

    curator_events = activity.list_activity(curator.id)["events"]
    assert [event["event_type"] for event in curator_events] == [EVENT_SELECTIONS_SAVED]
    assert curator_events[0]["actor_type"] == "curator"

    for event in sender_events + curator_events:
        serialized = repr(event["metadata"])
        assert "Private subject" not in serialized
        assert "Private words" not in serialized


def test_activity_is_paged_per_actor(seed):
    period = seed.period()
    for curator_id in ("curator-1", "curator-2", "curator-1", "curator-1"):
        selections.save_selections(curator_id, period.id, creator_ids=["c1"])

    first_page = activity.list_activity("curator-1", event_type=EVENT_SELECTIONS_SAVED, limit=2)
    assert first_page["count"] == 2
    assert first_page["next_cursor"] == first_page["events"][-1]["event_id"]

    second_page = activity.list_activity("curator-1", limit=2, cursor=first_page["next_cursor"])
    assert second_page["count"] == 1
    assert second_page["next_cursor"] is None
    seen = {event["event_id"] for event in first_page["events"] + second_page["events"]}
    assert len(seen) == 3

    assert activity.list_activity("curator-2")["count"] == 1


def test_activity_rejects_foreign_cursor_and_unknown_type(seed):
    period = seed.period()
    selections.save_selections("curator-1", period.id, creator_ids=["c1"])
    foreign = activity.list_activity("curator-1")["events"][0]["event_id"]

    stolen = activity.list_activity("curator-2", cursor=foreign)
    assert stolen["success"] is False
    assert stolen["field"] == "cursor"

    unknown = activity.list_activity("curator-1", event_type="memory.created")
    assert unknown["error_type"] == "validation_error"
    assert unknown["field"] == "event_type"

    anonymous = activity.list_activity("")
    assert anonymous["field"] == "actor_id"
