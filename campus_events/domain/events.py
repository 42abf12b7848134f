"""
Event lifecycle: creation, the approval workflow, deletion and listings.

Events created by users allowed to publish go straight into the live
`events` collection as approved/upcoming. Everyone else's submissions wait
in `pending_events` until an admin approves or rejects them.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from campus_events.auth_service.gate import Capability, has_capability
from campus_events.database.record_store import (
    EVENTS,
    PENDING_EVENTS,
    REGISTRATIONS,
    USERS,
    RecordStore,
)
from campus_events.domain.errors import DomainError, not_found, validation_error
from campus_events.domain.models import (
    APPROVED,
    EVENT_REJECTED,
    EVENT_REQUIRED_FIELDS,
    EVENT_UPCOMING,
    REJECTED,
    new_event,
    now_iso,
)

EventResult = Tuple[Optional[Dict[str, Any]], Optional[DomainError]]


def _validate_event_data(data: Dict[str, Any]) -> Optional[DomainError]:
    missing = [field for field in EVENT_REQUIRED_FIELDS if not data.get(field)]
    if missing:
        return validation_error(f"Missing required fields: {', '.join(missing)}")

    try:
        capacity = int(data["capacity"])
    except (TypeError, ValueError):
        return validation_error("capacity must be an integer")
    if capacity <= 0:
        return validation_error("capacity must be greater than 0")

    return None


def create_event(store: RecordStore, data: Dict[str, Any], user_id: str) -> EventResult:
    """
    Create an event on behalf of a user.

    Returns:
        (event, None) with the stored record.
        (None, NotFound) if the user does not exist.
        (None, ValidationError) if required fields are missing or invalid.
    """
    user = store.get(USERS, user_id)
    if not user:
        return None, not_found("User not found")

    err = _validate_event_data(data)
    if err:
        return None, err

    approved = has_capability(user.get("role"), Capability.PUBLISH_EVENTS)
    event = new_event(data, user, approved=approved)

    store.put(EVENTS if approved else PENDING_EVENTS, event)
    logging.info(
        f"[Events] Created {event['id']} by {user['role']} {user_id} "
        f"({'approved' if approved else 'pending approval'})"
    )
    return event, None


def approve_event(
    store: RecordStore,
    event_id: str,
    approved: bool,
    admin_id: Optional[str] = None,
) -> EventResult:
    """
    Decide on a pending event.

    Approved events move to the live collection as approved/upcoming.
    Rejected events are marked rejected and dropped from the pending set;
    they never reach the live collection.
    """
    with store.lock:
        event = store.get(PENDING_EVENTS, event_id)
        if not event:
            return None, not_found("Event not found")

        event["approvedBy"] = admin_id
        event["approvedAt"] = now_iso()

        if approved:
            event["approvalStatus"] = APPROVED
            event["status"] = EVENT_UPCOMING
            store.put(EVENTS, event)
        else:
            event["approvalStatus"] = REJECTED
            event["status"] = EVENT_REJECTED

        store.delete(PENDING_EVENTS, event_id)

    logging.info(f"[Events] Event {event_id} {'approved' if approved else 'rejected'} by {admin_id}")
    return event, None


def delete_event(store: RecordStore, event_id: str) -> EventResult:
    """
    Remove a live event together with its registrations, or a pending event.
    """
    with store.lock:
        event = store.get(EVENTS, event_id)
        if event:
            store.delete(EVENTS, event_id)
            registrations = store.registrations_for_event(event_id)
            for registration in registrations:
                store.delete(REGISTRATIONS, registration["id"])
            logging.info(f"[Events] Deleted {event_id} and {len(registrations)} registrations")
            return event, None

        event = store.get(PENDING_EVENTS, event_id)
        if event:
            store.delete(PENDING_EVENTS, event_id)
            logging.info(f"[Events] Deleted pending event {event_id}")
            return event, None

    return None, not_found("Event not found")


def _with_live_count(store: RecordStore, event: Dict[str, Any]) -> Dict[str, Any]:
    return {**event, "registrationsCount": len(store.registrations_for_event(event["id"]))}


def list_events(store: RecordStore) -> List[Dict[str, Any]]:
    """
    All live events with registration counts taken from the registrations.
    """
    return [_with_live_count(store, event) for event in store.list(EVENTS)]


def list_pending_events(store: RecordStore) -> List[Dict[str, Any]]:
    return store.list(PENDING_EVENTS)


def get_events_with_registration_status(store: RecordStore, user_id: str) -> List[Dict[str, Any]]:
    """
    Live events, each flagged with `isRegistered` for the given user.
    Unknown users get the plain list.
    """
    events = list_events(store)
    if not store.get(USERS, user_id):
        return events

    return [
        {**event, "isRegistered": user_id in (event.get("registeredUserIds") or [])}
        for event in events
    ]


def get_available_events(store: RecordStore, user: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Events a user may browse: approved ones, or everything (pending
    submissions included) for users who can see all events.
    """
    events = get_events_with_registration_status(store, user["id"])

    if has_capability(user.get("role"), Capability.VIEW_ALL_EVENTS):
        pending = [{**event, "isRegistered": False} for event in list_pending_events(store)]
        return events + pending

    return [event for event in events if event.get("approvalStatus") == APPROVED]
