"""
Student management routes (admin only): search, participation stats and
CSV roster import/export.
"""

import logging
from typing import Tuple

from flask import Blueprint, Response, jsonify, request

from campus_events.auth_service.gate import Capability
from campus_events.auth_service.utils import verify_token_from_request
from campus_events.database.record_store import get_store
from campus_events.domain import students as student_ops
from campus_events.domain.users import search_students

students_bp = Blueprint("students", __name__)


@students_bp.before_request
def before_request() -> None:
    logging.info(f"[Students] Incoming {request.method} {request.path}")


@students_bp.after_request
def after_request(response: Response) -> Response:
    logging.info(f"[Students] Response {response.status}")
    return response


@students_bp.route("", methods=["GET"])
def list_students() -> Tuple[Response, int]:
    """
    Search students.

    Query params:
    - q: matches name, roll number, course or email (case-insensitive)
    - department, year: exact filters
    """
    _, err, code = verify_token_from_request(Capability.MANAGE_STUDENTS)
    if err:
        return err, code

    try:
        students = search_students(
            get_store(),
            query=request.args.get("q"),
            department=request.args.get("department"),
            year=request.args.get("year"),
        )
    except Exception as e:
        logging.error(f"Storage error searching students: {e}")
        return jsonify({"error": "Failed to search students"}), 500

    return jsonify({"students": students}), 200


@students_bp.route("/<roll_number>/stats", methods=["GET"])
def participation_stats(roll_number: str) -> Tuple[Response, int]:
    _, err, code = verify_token_from_request(Capability.MANAGE_STUDENTS)
    if err:
        return err, code

    try:
        stats = student_ops.get_student_participation_stats(get_store(), roll_number)
    except Exception as e:
        logging.error(f"Storage error computing stats for {roll_number}: {e}")
        return jsonify({"error": "Failed to compute participation stats"}), 500

    return jsonify(stats), 200


@students_bp.route("/export", methods=["GET"])
def export_students():
    """
    Download the student roster as CSV.
    """
    _, err, code = verify_token_from_request(Capability.MANAGE_STUDENTS)
    if err:
        return err, code

    try:
        csv_data = student_ops.export_student_data(get_store())
    except Exception as e:
        logging.error(f"Storage error exporting students: {e}")
        return jsonify({"error": "Failed to export data"}), 500

    return Response(
        csv_data,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=student_data.csv"},
    )


@students_bp.route("/import", methods=["POST"])
def import_students() -> Tuple[Response, int]:
    """
    Import students from CSV.

    Accepts either a raw text/csv body or JSON { "csv": "<text>" }.

    Returns:
        200: { "imported": int, "skipped": int }
        400: Bad header or empty body.
    """
    _, err, code = verify_token_from_request(Capability.MANAGE_STUDENTS)
    if err:
        return err, code

    if request.is_json:
        csv_text = (request.get_json(silent=True) or {}).get("csv") or ""
    else:
        csv_text = request.get_data(as_text=True)

    if not csv_text.strip():
        return jsonify({"error": "No CSV data provided"}), 400

    try:
        summary, error = student_ops.import_student_data(get_store(), csv_text)
    except Exception as e:
        logging.error(f"Storage error importing students: {e}")
        return jsonify({"error": "Failed to import data. Please check file format."}), 500

    if error:
        return jsonify(error.to_dict()), error.status_code

    return jsonify(summary), 200
