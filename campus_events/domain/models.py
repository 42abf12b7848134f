"""
Record shapes for users, events, registrations and Non-CGPA claims.

Records are plain JSON-compatible dicts with camelCase keys, the same shape
whether they live in the local store or the key-value store. Each entity has
exactly one factory here; everything else mutates fields in place.
"""

import os
import secrets
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from campus_events.auth_service.gate import Role

load_dotenv()

COLLEGE_EMAIL_DOMAIN = os.getenv("COLLEGE_EMAIL_DOMAIN", "@klu.ac.in")

# --- STATUS VALUES ---
EVENT_UPCOMING = "upcoming"
EVENT_ONGOING = "ongoing"
EVENT_COMPLETED = "completed"
EVENT_PENDING = "pending"
EVENT_REJECTED = "rejected"
EVENT_STATUSES = [EVENT_UPCOMING, EVENT_ONGOING, EVENT_COMPLETED, EVENT_PENDING, EVENT_REJECTED]

APPROVED = "approved"
PENDING = "pending"
REJECTED = "rejected"
APPROVAL_STATUSES = [APPROVED, PENDING, REJECTED]
CLAIM_STATUSES = [PENDING, APPROVED, REJECTED]

EVENT_REQUIRED_FIELDS = ["name", "description", "category", "venue", "date", "time", "capacity"]
DEFAULT_CLAIM_REASON = "Non-CGPA Claim"


def new_id(prefix: str) -> str:
    """
    Generate an id like 'event_1718000000000_3f9a1c2b'.
    """
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def is_valid_college_email(email: Optional[str]) -> bool:
    return bool(email) and email.endswith(COLLEGE_EMAIL_DOMAIN)


def new_user(
    email: str,
    name: str,
    role: str,
    department: Optional[str] = None,
    year: Optional[str] = None,
    roll_number: Optional[str] = None,
    course: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build a user record. Student-only fields are dropped for admins.
    """
    user = {
        "id": user_id or new_id("user"),
        "email": email,
        "name": name,
        "role": role,
        "createdAt": now_iso(),
    }
    if role == Role.STUDENT.value:
        user.update({
            "department": department or "",
            "year": year or "",
            "rollNumber": roll_number or "",
            "course": course or "",
        })
    return user


def new_event(data: Dict[str, Any], creator: Dict[str, Any], approved: bool) -> Dict[str, Any]:
    """
    Build an event record from validated input.

    Args:
        data (dict): Event fields supplied by the caller.
        creator (dict): The creating user's record.
        approved (bool): True when the creator may publish directly.
    """
    return {
        "id": new_id("event"),
        "name": data["name"],
        "description": data["description"],
        "category": data["category"],
        "venue": data["venue"],
        "date": data["date"],
        "time": data["time"],
        "capacity": int(data["capacity"]),
        "contactPerson": data.get("contactPerson", ""),
        "contactEmail": data.get("contactEmail", ""),
        "registrationsCount": 0,
        "registeredUserIds": [],
        "status": EVENT_UPCOMING if approved else EVENT_PENDING,
        "approvalStatus": APPROVED if approved else PENDING,
        "createdBy": creator["id"],
        "createdByName": creator.get("name", "Unknown"),
        "createdByRole": creator.get("role", Role.STUDENT.value),
        "createdAt": now_iso(),
    }


def new_registration(event: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    """
    Snapshot of the event and student at registration time.
    These copies are not updated if the event or user changes later.
    """
    return {
        "id": new_id("reg"),
        "eventId": event["id"],
        "eventName": event["name"],
        "eventDate": event["date"],
        "eventVenue": event["venue"],
        "category": event["category"],
        "userId": user["id"],
        "studentName": user["name"],
        "studentEmail": user["email"],
        "department": user.get("department") or "",
        "year": user.get("year") or "",
        "rollNumber": user.get("rollNumber") or "",
        "registeredAt": now_iso(),
        "attended": None,
    }


def new_claim(data: Dict[str, Any], user: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": new_id("claim"),
        "studentId": user["id"],
        "studentName": user["name"],
        "studentEmail": user["email"],
        "rollNumber": user.get("rollNumber") or "",
        "department": user.get("department") or "",
        "year": user.get("year") or "",
        "reason": data.get("reason") or DEFAULT_CLAIM_REASON,
        "description": data["description"],
        "documents": list(data.get("documents") or []),
        "status": PENDING,
        "createdAt": now_iso(),
        "reviewedAt": None,
        "reviewedBy": None,
        "adminComments": None,
    }
