"""
Registrations service routes: registration listings and attendance marking.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, jsonify, request

from campus_events.auth_service.gate import Capability
from campus_events.auth_service.utils import verify_token_from_request
from campus_events.database.record_store import get_store
from campus_events.domain import registrations as registration_ops

registrations_bp = Blueprint("registrations", __name__)


@registrations_bp.before_request
def before_request() -> None:
    logging.info(f"[Registrations] Incoming {request.method} {request.path}")


@registrations_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Registrations] Response {response.status}")
    return response


@registrations_bp.route("", methods=["GET"])
def list_registrations() -> Tuple[Response, int]:
    """
    Admin-only: every registration in the system.
    """
    _, err, code = verify_token_from_request(Capability.VIEW_ALL_REGISTRATIONS)
    if err:
        return err, code

    try:
        registrations = registration_ops.list_registrations(get_store())
    except Exception as e:
        logging.error(f"Storage error listing registrations: {e}")
        return jsonify({"error": "Failed to fetch registrations"}), 500

    return jsonify({"registrations": registrations}), 200


@registrations_bp.route("/my", methods=["GET"])
def my_registrations() -> Tuple[Response, int]:
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    try:
        registrations = registration_ops.get_user_registrations(get_store(), user["id"])
    except Exception as e:
        logging.error(f"Storage error listing registrations for {user['id']}: {e}")
        return jsonify({"error": "Failed to fetch your registrations"}), 500

    return jsonify({"registrations": registrations}), 200


@registrations_bp.route("/<registration_id>/attendance", methods=["PUT"])
def update_attendance(registration_id: str) -> Tuple[Response, int]:
    """
    Admin-only: mark whether a student attended.

    Expects JSON: { "attended": bool }

    Returns:
        200: { "registration": {...} }
        400: attended missing or not a boolean.
        404: Registration not found.
    """
    _, err, code = verify_token_from_request(Capability.MARK_ATTENDANCE)
    if err:
        return err, code

    data: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        registration, error = registration_ops.update_attendance(
            get_store(), registration_id, data.get("attended")
        )
    except Exception as e:
        logging.error(f"Storage error updating attendance for {registration_id}: {e}")
        return jsonify({"error": "Failed to update attendance"}), 500

    if error:
        return jsonify(error.to_dict()), error.status_code

    return jsonify({"registration": registration}), 200
