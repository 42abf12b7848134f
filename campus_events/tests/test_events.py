import pytest

from campus_events.database.record_store import EVENTS, PENDING_EVENTS, REGISTRATIONS
from campus_events.domain.errors import ErrorKind
from campus_events.domain.events import (
    approve_event,
    create_event,
    delete_event,
    get_available_events,
    get_events_with_registration_status,
    list_events,
    list_pending_events,
)
from campus_events.domain.registrations import register_for_event


def test_admin_event_is_published(store, admin, event_data):
    event, err = create_event(store, event_data, admin["id"])

    assert err is None
    assert event["approvalStatus"] == "approved"
    assert event["status"] == "upcoming"
    assert event["createdBy"] == admin["id"]
    assert event["createdByRole"] == "admin"
    assert event["registrationsCount"] == 0
    assert event["registeredUserIds"] == []
    assert store.get(EVENTS, event["id"]) == event
    assert list_pending_events(store) == []


def test_student_event_waits_for_approval(store, student, event_data):
    event, err = create_event(store, event_data, student["id"])

    assert err is None
    assert event["approvalStatus"] == "pending"
    assert event["status"] == "pending"
    assert store.get(EVENTS, event["id"]) is None
    assert list_pending_events(store) == [event]
    assert get_events_with_registration_status(store, student["id"]) == []


@pytest.mark.parametrize("missing", ["name", "venue", "capacity", "date"])
def test_create_event_requires_fields(store, admin, event_data, missing):
    data = {k: v for k, v in event_data.items() if k != missing}

    event, err = create_event(store, data, admin["id"])

    assert event is None
    assert err.kind == ErrorKind.VALIDATION_ERROR
    assert missing in err.message


@pytest.mark.parametrize("capacity", ["many", -3])
def test_create_event_rejects_bad_capacity(store, admin, event_data, capacity):
    _, err = create_event(store, {**event_data, "capacity": capacity}, admin["id"])
    assert err.kind == ErrorKind.VALIDATION_ERROR


def test_create_event_unknown_user(store, event_data):
    _, err = create_event(store, event_data, "user_missing")
    assert err.kind == ErrorKind.NOT_FOUND


def test_approve_moves_event_to_live(store, admin, student, event_data):
    event, _ = create_event(store, event_data, student["id"])

    approved, err = approve_event(store, event["id"], True, admin_id=admin["id"])

    assert err is None
    assert approved["approvalStatus"] == "approved"
    assert approved["status"] == "upcoming"
    assert approved["approvedBy"] == admin["id"]
    assert store.get(PENDING_EVENTS, event["id"]) is None
    assert store.get(EVENTS, event["id"])["approvalStatus"] == "approved"

    visible = get_events_with_registration_status(store, student["id"])
    assert [e["id"] for e in visible] == [event["id"]]
    assert visible[0]["isRegistered"] is False


def test_reject_drops_event_permanently(store, admin, student, event_data):
    event, _ = create_event(store, event_data, student["id"])

    rejected, err = approve_event(store, event["id"], False, admin_id=admin["id"])

    assert err is None
    assert rejected["approvalStatus"] == "rejected"
    assert rejected["status"] == "rejected"
    assert store.get(PENDING_EVENTS, event["id"]) is None
    assert store.get(EVENTS, event["id"]) is None

    _, err = approve_event(store, event["id"], True)
    assert err.kind == ErrorKind.NOT_FOUND
    assert list_events(store) == []


def test_approve_unknown_event(store):
    _, err = approve_event(store, "event_missing", True)
    assert err.kind == ErrorKind.NOT_FOUND


def test_delete_event_cascades_registrations(store, admin, student, make_user, event_data):
    event, _ = create_event(store, {**event_data, "capacity": 10}, admin["id"])
    other, _ = create_event(store, {**event_data, "name": "Other"}, admin["id"])
    register_for_event(store, event["id"], student["id"])
    register_for_event(store, event["id"], make_user(name="Ravi")["id"])
    register_for_event(store, other["id"], student["id"])

    deleted, err = delete_event(store, event["id"])

    assert err is None
    assert deleted["id"] == event["id"]
    assert store.get(EVENTS, event["id"]) is None
    remaining = store.list(REGISTRATIONS)
    assert [r["eventId"] for r in remaining] == [other["id"]]
    assert store.registrations_for_user(student["id"])[0]["eventId"] == other["id"]


def test_delete_pending_event(store, student, event_data):
    event, _ = create_event(store, event_data, student["id"])

    _, err = delete_event(store, event["id"])

    assert err is None
    assert list_pending_events(store) == []

    _, err = delete_event(store, event["id"])
    assert err.kind == ErrorKind.NOT_FOUND


def test_list_events_reports_live_counts(store, admin, student, event_data):
    event, _ = create_event(store, event_data, admin["id"])
    register_for_event(store, event["id"], student["id"])

    events = list_events(store)

    assert events[0]["registrationsCount"] == 1


def test_events_keep_insertion_order(store, admin, event_data):
    names = ["First", "Second", "Third"]
    for name in names:
        create_event(store, {**event_data, "name": name}, admin["id"])

    assert [e["name"] for e in list_events(store)] == names


def test_registration_status_flags(store, admin, student, event_data):
    first, _ = create_event(store, event_data, admin["id"])
    second, _ = create_event(store, {**event_data, "name": "Quiz"}, admin["id"])
    register_for_event(store, second["id"], student["id"])

    flags = {e["id"]: e["isRegistered"] for e in get_events_with_registration_status(store, student["id"])}

    assert flags == {first["id"]: False, second["id"]: True}
    assert "isRegistered" not in get_events_with_registration_status(store, "user_missing")[0]


def test_available_events_by_role(store, admin, student, event_data):
    live, _ = create_event(store, event_data, admin["id"])
    pending, _ = create_event(store, {**event_data, "name": "Proposal"}, student["id"])

    student_view = [e["id"] for e in get_available_events(store, student)]
    admin_view = [e["id"] for e in get_available_events(store, admin)]

    assert student_view == [live["id"]]
    assert admin_view == [live["id"], pending["id"]]
