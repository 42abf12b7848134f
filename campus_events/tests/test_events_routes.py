from campus_events.database.record_store import EVENTS, PENDING_EVENTS, REGISTRATIONS


def test_list_events_requires_token(client):
    response = client.get("/events")
    assert response.status_code == 401


def test_admin_creates_published_event(client, store, admin, auth_header, event_data):
    response = client.post("/events", json=event_data, headers=auth_header(admin))

    assert response.status_code == 201
    event = response.get_json()["event"]
    assert event["status"] == "upcoming"
    assert event["approvalStatus"] == "approved"
    assert store.get(EVENTS, event["id"]) is not None

    listed = client.get("/events", headers=auth_header(admin)).get_json()["events"]
    assert [e["id"] for e in listed] == [event["id"]]


def test_student_event_waits_for_approval(client, store, student, admin, auth_header, event_data):
    response = client.post("/events", json=event_data, headers=auth_header(student))

    assert response.status_code == 201
    event = response.get_json()["event"]
    assert event["approvalStatus"] == "pending"
    assert store.get(EVENTS, event["id"]) is None

    pending = client.get("/events/pending", headers=auth_header(admin)).get_json()["events"]
    assert [e["id"] for e in pending] == [event["id"]]


def test_create_event_missing_fields(client, admin, auth_header):
    response = client.post("/events", json={"name": "Only a name"}, headers=auth_header(admin))

    assert response.status_code == 400
    assert response.get_json()["kind"] == "ValidationError"


def test_pending_is_admin_only(client, student, auth_header):
    response = client.get("/events/pending", headers=auth_header(student))

    assert response.status_code == 403
    assert response.get_json()["error"] == "permission denied"


def test_approve_event(client, store, student, admin, auth_header, event_data):
    event_id = client.post("/events", json=event_data, headers=auth_header(student)).get_json()["event"]["id"]

    response = client.put(f"/events/{event_id}/approve", json={"approved": True}, headers=auth_header(admin))

    assert response.status_code == 200
    assert response.get_json()["event"]["approvalStatus"] == "approved"
    assert store.get(EVENTS, event_id) is not None
    assert store.get(PENDING_EVENTS, event_id) is None


def test_approve_event_forbidden_for_students(client, student, auth_header, event_data):
    event_id = client.post("/events", json=event_data, headers=auth_header(student)).get_json()["event"]["id"]

    response = client.put(f"/events/{event_id}/approve", json={"approved": True}, headers=auth_header(student))
    assert response.status_code == 403


def test_approve_event_requires_boolean(client, admin, auth_header):
    response = client.put("/events/evt_1/approve", json={"approved": "yes"}, headers=auth_header(admin))
    assert response.status_code == 400


def test_approve_unknown_event(client, admin, auth_header):
    response = client.put("/events/evt_missing/approve", json={"approved": False}, headers=auth_header(admin))

    assert response.status_code == 404
    assert response.get_json()["kind"] == "NotFound"


def test_delete_event(client, store, admin, student, auth_header, event_data):
    event_id = client.post("/events", json=event_data, headers=auth_header(admin)).get_json()["event"]["id"]
    client.post(f"/events/{event_id}/register", headers=auth_header(student))

    response = client.delete(f"/events/{event_id}", headers=auth_header(admin))

    assert response.status_code == 200
    assert response.get_json()["message"] == "Event deleted successfully"
    assert store.list(EVENTS) == []
    assert store.list(REGISTRATIONS) == []


def test_delete_event_forbidden_for_students(client, admin, student, auth_header, event_data):
    event_id = client.post("/events", json=event_data, headers=auth_header(admin)).get_json()["event"]["id"]

    response = client.delete(f"/events/{event_id}", headers=auth_header(student))
    assert response.status_code == 403


def test_delete_unknown_event(client, admin, auth_header):
    response = client.delete("/events/evt_missing", headers=auth_header(admin))
    assert response.status_code == 404


def test_register_and_unregister(client, admin, student, auth_header, event_data):
    event_id = client.post("/events", json=event_data, headers=auth_header(admin)).get_json()["event"]["id"]

    response = client.post(f"/events/{event_id}/register", headers=auth_header(student))

    assert response.status_code == 201
    registration = response.get_json()["registration"]
    assert registration["eventId"] == event_id
    assert registration["studentEmail"] == student["email"]

    available = client.get("/events/available", headers=auth_header(student)).get_json()["events"]
    assert available[0]["isRegistered"] is True
    assert available[0]["registrationsCount"] == 1

    response = client.delete(f"/events/{event_id}/unregister", headers=auth_header(student))
    assert response.status_code == 200
    assert response.get_json()["message"] == "Unregistered successfully"

    available = client.get("/events/available", headers=auth_header(student)).get_json()["events"]
    assert available[0]["isRegistered"] is False
    assert available[0]["registrationsCount"] == 0


def test_register_twice(client, admin, student, auth_header, event_data):
    event_id = client.post("/events", json=event_data, headers=auth_header(admin)).get_json()["event"]["id"]
    client.post(f"/events/{event_id}/register", headers=auth_header(student))

    response = client.post(f"/events/{event_id}/register", headers=auth_header(student))

    assert response.status_code == 400
    assert response.get_json()["kind"] == "Duplicate"


def test_register_full_event(client, admin, make_user, auth_header, event_data):
    event_id = client.post(
        "/events", json={**event_data, "capacity": 1}, headers=auth_header(admin)
    ).get_json()["event"]["id"]
    first, second = make_user(name="First"), make_user(name="Second")
    client.post(f"/events/{event_id}/register", headers=auth_header(first))

    response = client.post(f"/events/{event_id}/register", headers=auth_header(second))

    assert response.status_code == 400
    assert response.get_json()["kind"] == "Full"


def test_register_unknown_event(client, student, auth_header):
    response = client.post("/events/evt_missing/register", headers=auth_header(student))
    assert response.status_code == 404


def test_register_outside_college_domain(client, admin, make_user, auth_header, event_data):
    event_id = client.post("/events", json=event_data, headers=auth_header(admin)).get_json()["event"]["id"]
    outsider = make_user(name="Outsider", email="outsider@gmail.com")

    response = client.post(f"/events/{event_id}/register", headers=auth_header(outsider))

    assert response.status_code == 400
    assert response.get_json()["kind"] == "InvalidEmail"


def test_admin_cannot_register(client, admin, auth_header, event_data):
    event_id = client.post("/events", json=event_data, headers=auth_header(admin)).get_json()["event"]["id"]

    response = client.post(f"/events/{event_id}/register", headers=auth_header(admin))
    assert response.status_code == 403


def test_unregister_without_registration(client, admin, student, auth_header, event_data):
    event_id = client.post("/events", json=event_data, headers=auth_header(admin)).get_json()["event"]["id"]

    response = client.delete(f"/events/{event_id}/unregister", headers=auth_header(student))
    assert response.status_code == 404


def test_storage_failure_returns_500(client, admin, auth_header, mocker):
    mocker.patch("campus_events.events_service.routes.event_ops.list_events", side_effect=Exception("down"))

    response = client.get("/events", headers=auth_header(admin))

    assert response.status_code == 500
    assert response.get_json()["error"] == "Failed to fetch events"


def test_unregister_from_event_id_user(client, store, admin, student, auth_header, event_data):
    event_id = client.post("/events", json=event_data, headers=auth_header(admin)).get_json()["event"]["id"]
    client.post(f"/events/{event_id}/register", headers=auth_header(student))

    response = client.delete("/events/user/unregister", headers=auth_header(student))

    assert response.status_code == 404
    assert store.get(EVENTS, event_id)["registrationsCount"] == 1
    assert len(store.list(REGISTRATIONS)) == 1
