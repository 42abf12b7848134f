"""
User lookup, signup and student search.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from campus_events.auth_service.gate import Role, parse_role
from campus_events.database.record_store import USERS, RecordStore
from campus_events.domain.errors import DomainError, ErrorKind, validation_error
from campus_events.domain.models import new_user


def find_user_by_email(store: RecordStore, email: str) -> Optional[Dict[str, Any]]:
    return store.find(USERS, email=email)


def authenticate_user(store: RecordStore, email: str, password: str) -> Optional[Dict[str, Any]]:
    """
    Look up a user by email. Any non-empty password is accepted; credential
    checks for HTTP signups happen in the auth routes.
    """
    user = find_user_by_email(store, email)
    if user and password:
        return user
    return None


def register_user(store: RecordStore, data: Dict[str, Any]) -> Tuple[Optional[Dict[str, Any]], Optional[DomainError]]:
    """
    Create a user from signup data.

    Expects: email, name, role and optionally department, year,
    rollNumber, course.

    Returns:
        (user, None) on success.
        (None, ValidationError) on missing fields or unknown role.
        (None, Duplicate) if the email is already taken.
    """
    email = (data.get("email") or "").strip().lower()
    name = (data.get("name") or "").strip()
    role = parse_role(data.get("role") or Role.STUDENT.value)

    if not email or not name:
        return None, validation_error("Email and name required")
    if role is None:
        return None, validation_error("Role must be 'admin' or 'student'")
    if find_user_by_email(store, email):
        return None, DomainError(ErrorKind.DUPLICATE, "Email already exists")

    user = new_user(
        email=email,
        name=name,
        role=role.value,
        department=data.get("department"),
        year=data.get("year"),
        roll_number=data.get("rollNumber"),
        course=data.get("course"),
    )
    store.put(USERS, user)
    logging.info(f"[Users] Registered {role.value} {user['id']} ({email})")
    return user, None


def search_students(
    store: RecordStore,
    query: Optional[str] = None,
    department: Optional[str] = None,
    year: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Case-insensitive search over name, roll number, course and email,
    optionally narrowed by exact department and year.
    """
    students = [u for u in store.list(USERS) if u.get("role") == Role.STUDENT.value]

    if query:
        needle = query.lower()
        students = [
            u for u in students
            if any(needle in (u.get(field) or "").lower() for field in ("name", "rollNumber", "course", "email"))
        ]
    if department:
        students = [u for u in students if u.get("department") == department]
    if year:
        students = [u for u in students if u.get("year") == year]

    return students
