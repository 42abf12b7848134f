"""
Event registration, unregistration and attendance.

Invariants kept on every live event:
- registrationsCount == len(registeredUserIds)
- registrationsCount <= capacity (checked when registering)

The checks and writes of register/unregister run under `store.lock`, so
requests served by one process cannot overbook an event. Separate processes
sharing a database can still race; writes there are last-write-wins.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from campus_events.auth_service.gate import Role
from campus_events.database.record_store import EVENTS, REGISTRATIONS, USERS, RecordStore
from campus_events.domain.errors import DomainError, ErrorKind, not_found, validation_error
from campus_events.domain.models import COLLEGE_EMAIL_DOMAIN, is_valid_college_email, new_registration

RegistrationResult = Tuple[Optional[Dict[str, Any]], Optional[DomainError]]


def register_for_event(store: RecordStore, event_id: str, user_id: str) -> RegistrationResult:
    """
    Register a user for a live event.

    Checks, in order:
        NotFound      event or user missing
        InvalidEmail  student without a college email address
        Full          registrationsCount >= capacity
        Duplicate     user already registered

    Returns:
        (registration, None) on success.
    """
    with store.lock:
        event = store.get(EVENTS, event_id)
        if not event:
            return None, not_found("Event not found")

        user = store.get(USERS, user_id)
        if not user:
            return None, not_found("User not found")

        if user.get("role") == Role.STUDENT.value and not is_valid_college_email(user.get("email")):
            logging.warning(f"[Registrations] {user_id} rejected: email outside {COLLEGE_EMAIL_DOMAIN}")
            return None, DomainError(
                ErrorKind.INVALID_EMAIL,
                f"Students must have a valid college email ({COLLEGE_EMAIL_DOMAIN}) to register for events",
            )

        registered = event.get("registeredUserIds") or []

        if event.get("registrationsCount", 0) >= event["capacity"]:
            logging.warning(f"[Registrations] {event_id} is full ({event['capacity']})")
            return None, DomainError(ErrorKind.FULL, "Event is at full capacity")

        if user_id in registered:
            return None, DomainError(ErrorKind.DUPLICATE, "Already registered for this event")

        registration = new_registration(event, user)
        store.put(REGISTRATIONS, registration)

        event["registeredUserIds"] = registered + [user_id]
        event["registrationsCount"] = event.get("registrationsCount", 0) + 1
        store.put(EVENTS, event)

    logging.info(f"[Registrations] {user_id} registered for {event_id}")
    return registration, None


def unregister_from_event(store: RecordStore, event_id: str, user_id: str) -> RegistrationResult:
    """
    Remove a user's registration, matched by event id and the user's email.
    The event count is decremented but never below zero.
    """
    with store.lock:
        user = store.get(USERS, user_id)
        if not user:
            return None, not_found("User not found")

        registration = next(
            (
                r for r in store.registrations_for_event(event_id)
                if r.get("eventId") == event_id and r.get("studentEmail") == user["email"]
            ),
            None,
        )
        if not registration:
            return None, not_found("Registration not found")

        store.delete(REGISTRATIONS, registration["id"])

        event = store.get(EVENTS, event_id)
        if event:
            event["registrationsCount"] = max(0, event.get("registrationsCount", 0) - 1)
            event["registeredUserIds"] = [
                uid for uid in (event.get("registeredUserIds") or []) if uid != user_id
            ]
            store.put(EVENTS, event)

    logging.info(f"[Registrations] {user_id} unregistered from {event_id}")
    return registration, None


def update_attendance(store: RecordStore, registration_id: str, attended: Any) -> RegistrationResult:
    if not isinstance(attended, bool):
        return None, validation_error("attended must be true or false")

    registration = store.get(REGISTRATIONS, registration_id)
    if not registration:
        return None, not_found("Registration not found")

    registration["attended"] = attended
    store.put(REGISTRATIONS, registration)
    logging.info(f"[Registrations] Attendance for {registration_id} set to {attended}")
    return registration, None


def get_user_registrations(store: RecordStore, user_id: str) -> List[Dict[str, Any]]:
    if not store.get(USERS, user_id):
        return []
    return store.registrations_for_user(user_id)


def list_registrations(store: RecordStore) -> List[Dict[str, Any]]:
    return store.list(REGISTRATIONS)
