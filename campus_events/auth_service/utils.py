"""
Shared authentication helpers.
Provides token creation, verification, and capability enforcement.

Two token flavours are supported:
- jwt:   signed HS256 tokens issued by the server (default).
- local: base64 of "{userId}-{epochMillis}", the unsigned client-only
         session token. Anyone can forge one; only use it offline.
"""

import base64
import binascii
import logging
import os
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import jwt
from dotenv import load_dotenv
from flask import Response, current_app, jsonify, request

from campus_events.auth_service.gate import Capability, has_capability
from campus_events.database.record_store import USERS, RecordStore, get_store
from campus_events.domain.errors import DomainError, ErrorKind

# Load .env only once here
load_dotenv()

# Load secrets & configs
JWT_SECRET = os.getenv("JWT_SECRET")
if not JWT_SECRET:
    raise RuntimeError("JWT_SECRET is missing. Set it in .env")

TOKEN_EXPIRATION_MINUTES = int(os.getenv("TOKEN_EXPIRATION_MINUTES", 1440))  # Default 24 hours
AUTH_TOKEN_MODE = os.getenv("AUTH_TOKEN_MODE", "jwt")


# --- JWT CREATION ---
def create_token(user_id: str, role: str) -> str:
    """
    Generates a new JWT for a given user.

    Args:
        user_id (str): The unique ID of the user.
        role (str): The role of the user (admin, student).

    Returns:
        str: Encoded JWT string.
    """
    now = datetime.now(timezone.utc)

    payload = {
        "sub": user_id,
        "role": role,
        "exp": now + timedelta(minutes=TOKEN_EXPIRATION_MINUTES),
        "iat": now
    }

    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def verify_token(token: str) -> Optional[str]:
    """
    Validate a JWT.

    Returns:
        str: user_id if valid, None otherwise.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=["HS256"])
        return payload.get("sub")
    except jwt.ExpiredSignatureError:
        logging.info("[Auth] Rejected expired token")
        return None
    except jwt.PyJWTError:
        return None


# --- CLIENT-ONLY TOKENS ---
def issue_local_token(user_id: str) -> str:
    raw = f"{user_id}-{int(time.time() * 1000)}"
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def decode_local_token(token: str) -> Optional[str]:
    """
    Recover the user id from a client-only token, or None if malformed.
    User ids may themselves contain '-', so split on the last one.
    """
    try:
        raw = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, ValueError):
        return None

    user_id, sep, timestamp = raw.rpartition("-")
    if not sep or not user_id or not timestamp.isdigit():
        return None
    return user_id


# --- VERIFIERS ---
class AuthVerifier:
    """
    Issues session tokens and maps them back to user ids.
    """

    def issue(self, user: Dict[str, Any]) -> str:
        raise NotImplementedError

    def user_id_from_token(self, token: str) -> Optional[str]:
        raise NotImplementedError


class JWTVerifier(AuthVerifier):
    def issue(self, user: Dict[str, Any]) -> str:
        return create_token(user["id"], user["role"])

    def user_id_from_token(self, token: str) -> Optional[str]:
        return verify_token(token)


class LocalTokenVerifier(AuthVerifier):
    def issue(self, user: Dict[str, Any]) -> str:
        return issue_local_token(user["id"])

    def user_id_from_token(self, token: str) -> Optional[str]:
        return decode_local_token(token)


VERIFIERS = {
    "jwt": JWTVerifier,
    "local": LocalTokenVerifier,
}


def get_verifier(mode: Optional[str] = None) -> AuthVerifier:
    """
    Return the verifier for `mode`, defaulting to the app's AUTH_TOKEN_MODE.
    """
    if mode is None:
        mode = current_app.config.get("AUTH_TOKEN_MODE", AUTH_TOKEN_MODE)
    try:
        return VERIFIERS[mode]()
    except KeyError:
        raise ValueError(f"Unknown AUTH_TOKEN_MODE: {mode}")


def issue_token(user: Dict[str, Any]) -> str:
    return get_verifier().issue(user)


# --- IDENTITY RESOLUTION ---
def verify(
    token: Optional[str],
    store: RecordStore,
    verifier: Optional[AuthVerifier] = None,
) -> Tuple[Optional[Dict[str, Any]], Optional[DomainError]]:
    """
    Resolve a session token to a user profile.

    Returns:
        (user, None) on success.
        (None, Unauthenticated) if the token is missing or malformed.
        (None, ProfileNotFound) if no user record matches the token.
    """
    if not token:
        return None, DomainError(ErrorKind.UNAUTHENTICATED, "missing token")

    verifier = verifier or get_verifier()
    user_id = verifier.user_id_from_token(token)
    if not user_id:
        return None, DomainError(ErrorKind.UNAUTHENTICATED, "invalid token")

    user = store.get(USERS, user_id)
    if not user:
        logging.warning(f"[Auth] User profile not found for {user_id}")
        return None, DomainError(ErrorKind.PROFILE_NOT_FOUND, "User profile not found")

    return user, None


def verify_token_from_request(
    capability: Optional[Capability] = None,
) -> Tuple[Optional[Dict[str, Any]], Optional[Response], Optional[int]]:
    """
    Verify the bearer token in the Authorization header.

    Args:
        capability (Capability, optional): Capability the caller must hold.

    Returns:
        tuple: (user, error_response, status_code)
               If successful, error_response and status_code are None.
               If failed, user is None.
    """
    auth = request.headers.get("Authorization", "")

    if not auth.startswith("Bearer "):
        return None, jsonify({"error": "missing token", "kind": ErrorKind.UNAUTHENTICATED.value}), 401

    token = auth.split(" ", 1)[1]

    try:
        user, error = verify(token, get_store())
    except Exception as e:
        logging.error(f"[Auth] Verification failed: {e}")
        return None, jsonify({"error": "Authentication verification failed"}), 500

    if error:
        return None, jsonify(error.to_dict()), error.status_code

    if capability and not has_capability(user.get("role"), capability):
        return None, jsonify({"error": "permission denied", "kind": ErrorKind.FORBIDDEN.value}), 403

    return user, None, None
