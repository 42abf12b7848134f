"""
Authentication service route handlers.

Provides routes for:
- User signup
- User login
- Profile retrieval (/me)

Passwords given at signup are hashed with Argon2 and kept in the
`credentials` collection, never on the user record. Users created without a
password (seed data, CSV import) can log in with any non-empty password.

Token logic is delegated to `auth_service.utils`.
"""

import logging
from typing import Any, Dict, Tuple

from argon2 import PasswordHasher
from flask import Blueprint, Response, jsonify, request

from campus_events.auth_service.utils import issue_token, verify_token_from_request
from campus_events.database.record_store import CREDENTIALS, get_store
from campus_events.domain.users import authenticate_user, find_user_by_email, register_user

auth_bp = Blueprint("auth", __name__)
ph = PasswordHasher()


# --- REQUEST LOGGING ---
@auth_bp.before_request
def before_request() -> None:
    """
    Log every incoming request method and path to the authentication service.
    Headers are not logged because they carry bearer tokens.
    """
    logging.info(f"[Auth] Incoming {request.method} {request.path}")


@auth_bp.after_request
def after_request(response: Response) -> Response:
    """
    Log the response status code for every request.

    Args:
        response (Response): The Flask response object.

    Returns:
        Response: The passed-through response object.
    """
    logging.info(f"[Auth] Response {response.status}")
    return response


# --- SIGNUP ---
@auth_bp.route("/signup", methods=["POST"])
def signup() -> Tuple[Response, int]:
    """
    Register a new user in the system.

    Expects a JSON body with:
    - email (str): Unique email address.
    - password (str)
    - name (str)
    - role (str): 'admin' or 'student'
    - department, year, rollNumber, course (str, optional; students only)

    Returns:
        201: JSON with user and access_token.
        400: Missing fields, invalid role, or email already exists.
        500: Server-side error (hashing or storage).
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    email: str = (data.get("email") or "").strip().lower()
    password: str = data.get("password", "")

    if not email or not password or not data.get("name"):
        return jsonify({"error": "Email, password and name required"}), 400

    try:
        pw_hash = ph.hash(password)
    except Exception:
        return jsonify({"error": "Password hashing failed"}), 500

    store = get_store()
    try:
        user, err = register_user(store, {**data, "email": email})
        if err:
            return jsonify(err.to_dict()), err.status_code
        store.put(CREDENTIALS, {"id": user["id"], "email": email, "passwordHash": pw_hash})
    except Exception as e:
        logging.error(f"[Auth] Signup failed for {email}: {e}")
        return jsonify({"error": "Internal server error during signup"}), 500

    return jsonify({"user": user, "access_token": issue_token(user)}), 201


# --- LOGIN ---
@auth_bp.route("/login", methods=["POST"])
def login() -> Tuple[Response, int]:
    """
    Authenticate a user and return a session token.

    Expects a JSON body with:
    - email (str)
    - password (str)

    Returns:
        200: JSON with user and access_token.
        400: Missing credentials.
        401: Invalid credentials (wrong password or email).
        404: Credentials exist but the user profile is gone.
        500: Storage error.
    """
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    email: str = (data.get("email") or "").strip().lower()
    password: str = data.get("password", "")

    if not email or not password:
        return jsonify({"error": "Email and password required"}), 400

    store = get_store()
    try:
        user = find_user_by_email(store, email)
        # Credentials share the user's id; the email copy may be stale
        if user:
            credential = store.get(CREDENTIALS, user["id"])
        else:
            credential = store.find(CREDENTIALS, email=email)
    except Exception as e:
        logging.error(f"[Auth] Login lookup failed for {email}: {e}")
        return jsonify({"error": "Internal server error during login"}), 500

    if credential and not user:
        return jsonify({"error": "User profile not found"}), 404
    if not user:
        return jsonify({"error": "Invalid email or password"}), 401

    if credential:
        # Verify password against hash
        try:
            ph.verify(credential["passwordHash"], password)
        except Exception:
            return jsonify({"error": "Invalid email or password"}), 401
    elif not authenticate_user(store, email, password):
        return jsonify({"error": "Invalid email or password"}), 401

    return jsonify({"user": user, "access_token": issue_token(user)}), 200


# --- GET CURRENT USER ---
@auth_bp.route("/me", methods=["GET"])
def get_current_user() -> Tuple[Response, int]:
    """
    Retrieve the current user's profile.

    Requires Authorization header: Bearer <token>

    Returns:
        200: User profile object.
        401: Authentication failure or missing profile.
    """
    user, err, code = verify_token_from_request()
    if err:
        return err, code

    return jsonify({"user": user}), 200
