"""
Role and capability table.

All role-dependent decisions go through `has_capability` so that route
handlers and domain operations never compare role strings themselves.
"""

from enum import Enum
from typing import Optional


class Role(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


class Capability(str, Enum):
    PUBLISH_EVENTS = "publish_events"            # created events skip approval
    REVIEW_EVENTS = "review_events"
    DELETE_EVENTS = "delete_events"
    VIEW_ALL_EVENTS = "view_all_events"          # sees unapproved events too
    VIEW_ALL_REGISTRATIONS = "view_all_registrations"
    MARK_ATTENDANCE = "mark_attendance"
    REVIEW_CLAIMS = "review_claims"
    MANAGE_STUDENTS = "manage_students"
    REGISTER_FOR_EVENTS = "register_for_events"
    FILE_CLAIMS = "file_claims"
    MAINTAIN_DATA = "maintain_data"


ROLE_CAPABILITIES = {
    Role.ADMIN: frozenset({
        Capability.PUBLISH_EVENTS,
        Capability.REVIEW_EVENTS,
        Capability.DELETE_EVENTS,
        Capability.VIEW_ALL_EVENTS,
        Capability.VIEW_ALL_REGISTRATIONS,
        Capability.MARK_ATTENDANCE,
        Capability.REVIEW_CLAIMS,
        Capability.MANAGE_STUDENTS,
        Capability.REGISTER_FOR_EVENTS,
        Capability.MAINTAIN_DATA,
    }),
    Role.STUDENT: frozenset({
        Capability.REGISTER_FOR_EVENTS,
        Capability.FILE_CLAIMS,
    }),
}


def parse_role(value: Optional[str]) -> Optional[Role]:
    """
    Return the Role for a stored role string, or None if it is not one.
    """
    try:
        return Role(value)
    except ValueError:
        return None


def has_capability(role: Optional[str], capability: Capability) -> bool:
    parsed = parse_role(role)
    if parsed is None:
        return False
    return capability in ROLE_CAPABILITIES[parsed]
