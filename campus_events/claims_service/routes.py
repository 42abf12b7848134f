"""
Claims service routes: students file Non-CGPA claims, admins review them.
"""

import logging
from typing import Any, Dict, Tuple

from flask import Blueprint, Response, jsonify, request

from campus_events.auth_service.gate import Capability
from campus_events.auth_service.utils import verify_token_from_request
from campus_events.database.record_store import get_store
from campus_events.domain import claims as claim_ops

claims_bp = Blueprint("claims", __name__)


@claims_bp.before_request
def before_request() -> None:
    logging.info(f"[Claims] Incoming {request.method} {request.path}")


@claims_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Claims] Response {response.status}")
    return response


@claims_bp.route("", methods=["POST"])
def create_claim() -> Tuple[Response, int]:
    """
    File a Non-CGPA claim.

    Expects JSON:
        { "description": str, "reason": str (optional),
          "documents": ["data:image/png;base64,...", ...] (optional) }

    Returns:
        201: { "claim": {...} }
        400: Missing description or invalid document.
        403: Caller may not file claims.
    """
    user, err, code = verify_token_from_request(Capability.FILE_CLAIMS)
    if err:
        return err, code

    data: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        claim, error = claim_ops.create_claim(get_store(), data, user["id"])
    except Exception as e:
        logging.error(f"Storage error creating claim: {e}")
        return jsonify({"error": "Failed to submit claim"}), 500

    if error:
        return jsonify(error.to_dict()), error.status_code

    return jsonify({"claim": claim}), 201


@claims_bp.route("/my", methods=["GET"])
def my_claims() -> Tuple[Response, int]:
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    try:
        claims = claim_ops.get_user_claims(get_store(), user["id"])
    except Exception as e:
        logging.error(f"Storage error listing claims for {user['id']}: {e}")
        return jsonify({"error": "Failed to fetch your claims"}), 500

    return jsonify({"claims": claims}), 200


@claims_bp.route("", methods=["GET"])
def list_claims() -> Tuple[Response, int]:
    """
    Admin-only: all claims, optionally filtered with ?status=pending|approved|rejected.
    """
    _, err, code = verify_token_from_request(Capability.REVIEW_CLAIMS)
    if err:
        return err, code

    try:
        claims = claim_ops.list_claims(get_store(), status=request.args.get("status"))
    except Exception as e:
        logging.error(f"Storage error listing claims: {e}")
        return jsonify({"error": "Failed to fetch claims"}), 500

    return jsonify({"claims": claims}), 200


@claims_bp.route("/pending", methods=["GET"])
def list_pending_claims() -> Tuple[Response, int]:
    _, err, code = verify_token_from_request(Capability.REVIEW_CLAIMS)
    if err:
        return err, code

    try:
        claims = claim_ops.get_pending_claims(get_store())
    except Exception as e:
        logging.error(f"Storage error listing pending claims: {e}")
        return jsonify({"error": "Failed to fetch pending claims"}), 500

    return jsonify({"claims": claims}), 200


@claims_bp.route("/<claim_id>/review", methods=["PUT"])
def review_claim(claim_id: str) -> Tuple[Response, int]:
    """
    Admin-only: approve or reject a claim.

    Expects JSON: { "status": "approved" | "rejected", "comments": str (optional) }
    """
    user, err, code = verify_token_from_request(Capability.REVIEW_CLAIMS)
    if err:
        return err, code

    data: Dict[str, Any] = request.get_json(silent=True) or {}

    try:
        claim, error = claim_ops.review_claim(
            get_store(), claim_id, data.get("status"), user["id"], data.get("comments")
        )
    except Exception as e:
        logging.error(f"Storage error reviewing claim {claim_id}: {e}")
        return jsonify({"error": "Failed to review claim"}), 500

    if error:
        return jsonify(error.to_dict()), error.status_code

    return jsonify({"claim": claim}), 200
