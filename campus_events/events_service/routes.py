"""
Events service routes: create, list, approve and delete events, and
register/unregister for them.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, jsonify, request

from campus_events.auth_service.gate import Capability
from campus_events.auth_service.utils import verify_token_from_request
from campus_events.database.record_store import get_store
from campus_events.domain import events as event_ops
from campus_events.domain import registrations as registration_ops

events_bp = Blueprint("events", __name__)


@events_bp.before_request
def before_request() -> None:
    logging.info(f"[Events] Incoming {request.method} {request.path}")


@events_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Events] Response {response.status}")
    return response


@events_bp.route("", methods=["GET"])
def list_events() -> Tuple[Response, int]:
    """
    Return all live events with live registration counts.

    Returns:
        200: { "events": [...] }
        401: Not authenticated.
        500: Storage error.
    """
    _, err, code = verify_token_from_request()
    if err:
        return err, code

    try:
        events = event_ops.list_events(get_store())
    except Exception as e:
        logging.error(f"Storage error listing events: {e}")
        return jsonify({"error": "Failed to fetch events"}), 500

    return jsonify({"events": events}), 200


@events_bp.route("/available", methods=["GET"])
def list_available_events() -> Tuple[Response, int]:
    """
    Events the caller may browse, each flagged with `isRegistered`.

    Students see approved events only; admins also see pending submissions.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    try:
        events = event_ops.get_available_events(get_store(), user)
    except Exception as e:
        logging.error(f"Storage error listing available events: {e}")
        return jsonify({"error": "Failed to fetch available events"}), 500

    return jsonify({"events": events}), 200


@events_bp.route("/pending", methods=["GET"])
def list_pending_events() -> Tuple[Response, int]:
    """
    Admin-only: events waiting for approval.
    """
    _, err, code = verify_token_from_request(Capability.REVIEW_EVENTS)
    if err:
        return err, code

    try:
        events = event_ops.list_pending_events(get_store())
    except Exception as e:
        logging.error(f"Storage error listing pending events: {e}")
        return jsonify({"error": "Failed to fetch pending events"}), 500

    return jsonify({"events": events}), 200


@events_bp.route("", methods=["POST"])
def create_event() -> Tuple[Response, int]:
    """
    Create an event.

    Required fields: name, description, category, venue, date, time, capacity.
    Optional: contactPerson, contactEmail.

    Admin events are published immediately; student events wait for approval.

    Returns:
        201: { "event": {...} }
        400: Missing or invalid fields.
        401: Not authenticated.
        500: Storage error.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    data: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        event, error = event_ops.create_event(get_store(), data, user["id"])
    except Exception as e:
        logging.error(f"Storage error creating event: {e}")
        return jsonify({"error": "Failed to create event"}), 500

    if error:
        return jsonify(error.to_dict()), error.status_code

    return jsonify({"event": event}), 201


@events_bp.route("/<event_id>/approve", methods=["PUT"])
def approve_event(event_id: str) -> Tuple[Response, int]:
    """
    Admin-only: approve or reject a pending event.

    Expects JSON: { "approved": bool }
    """
    user, err, code = verify_token_from_request(Capability.REVIEW_EVENTS)
    if err:
        return err, code

    data: Dict[str, Any] = request.get_json(silent=True) or {}
    approved = data.get("approved")
    if not isinstance(approved, bool):
        return jsonify({"error": "approved must be true or false"}), 400

    try:
        event, error = event_ops.approve_event(get_store(), event_id, approved, admin_id=user["id"])
    except Exception as e:
        logging.error(f"Storage error updating approval for {event_id}: {e}")
        return jsonify({"error": "Failed to update event approval"}), 500

    if error:
        return jsonify(error.to_dict()), error.status_code

    return jsonify({"event": event}), 200


@events_bp.route("/<event_id>", methods=["DELETE"])
def delete_event(event_id: str) -> Tuple[Response, int]:
    """
    Admin-only: delete an event and all of its registrations.
    """
    _, err, code = verify_token_from_request(Capability.DELETE_EVENTS)
    if err:
        return err, code

    try:
        _, error = event_ops.delete_event(get_store(), event_id)
    except Exception as e:
        logging.error(f"Storage error deleting event {event_id}: {e}")
        return jsonify({"error": "Failed to delete event"}), 500

    if error:
        return jsonify(error.to_dict()), error.status_code

    return jsonify({"message": "Event deleted successfully"}), 200


@events_bp.route("/<event_id>/register", methods=["POST"])
def register(event_id: str) -> Tuple[Response, int]:
    """
    Register the caller for an event.

    Returns:
        201: { "registration": {...} }
        400: Event full, already registered, or invalid college email.
        404: Event not found.
    """
    user, err, code = verify_token_from_request(Capability.REGISTER_FOR_EVENTS)
    if err:
        return err, code

    try:
        registration, error = registration_ops.register_for_event(get_store(), event_id, user["id"])
    except Exception as e:
        logging.error(f"Storage error registering for {event_id}: {e}")
        return jsonify({"error": "Failed to register for event"}), 500

    if error:
        return jsonify(error.to_dict()), error.status_code

    return jsonify({"registration": registration}), 201


@events_bp.route("/<event_id>/unregister", methods=["DELETE"])
def unregister(event_id: str) -> Tuple[Response, int]:
    """
    Remove the caller's registration for an event.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    try:
        _, error = registration_ops.unregister_from_event(get_store(), event_id, user["id"])
    except Exception as e:
        logging.error(f"Storage error unregistering from {event_id}: {e}")
        return jsonify({"error": "Failed to unregister"}), 500

    if error:
        return jsonify(error.to_dict()), error.status_code

    return jsonify({"message": "Unregistered successfully"}), 200
