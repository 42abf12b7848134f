"""
Student management: participation statistics and CSV roster import/export.

CSV format (no quoting or escaping; cells are split on plain commas):

    Name,Roll Number,Email,Department,Year,Course[,Total Events,Attended Events]

Import reads the first six columns and ignores the two aggregate ones.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from campus_events.auth_service.gate import Role
from campus_events.database.record_store import REGISTRATIONS, USERS, RecordStore
from campus_events.domain.errors import DomainError, validation_error
from campus_events.domain.models import is_valid_college_email, new_user

CSV_HEADERS = ["Name", "Roll Number", "Email", "Department", "Year", "Course", "Total Events", "Attended Events"]
IMPORT_COLUMNS = 6


def _parse_event_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _registrations_by_email(store: RecordStore, email: str) -> List[Dict[str, Any]]:
    return [r for r in store.list(REGISTRATIONS) if r.get("studentEmail") == email]


def get_student_participation_stats(
    store: RecordStore,
    roll_number: str,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Participation summary for the student with the given roll number.

    Registrations are joined on the student's email. An event counts as
    upcoming when its date is after `now` and attendance is not marked.
    Unknown roll numbers give `student=None` and zero counts.
    """
    now = now or datetime.now(timezone.utc)
    student = next(
        (u for u in store.list(USERS) if u.get("rollNumber") == roll_number and u.get("role") == Role.STUDENT.value),
        None,
    )

    if not student:
        return {
            "student": None,
            "registrations": [],
            "totalEvents": 0,
            "attendedEvents": 0,
            "upcomingEvents": 0,
        }

    registrations = _registrations_by_email(store, student["email"])
    attended = [r for r in registrations if r.get("attended") is True]
    upcoming = []
    for r in registrations:
        event_date = _parse_event_date(r.get("eventDate"))
        if event_date and event_date > now and not r.get("attended"):
            upcoming.append(r)

    return {
        "student": student,
        "registrations": registrations,
        "totalEvents": len(registrations),
        "attendedEvents": len(attended),
        "upcomingEvents": len(upcoming),
    }


def export_student_data(store: RecordStore) -> str:
    registrations = store.list(REGISTRATIONS)
    rows = [",".join(CSV_HEADERS)]

    for user in store.list(USERS):
        if user.get("role") != Role.STUDENT.value:
            continue
        mine = [r for r in registrations if r.get("studentEmail") == user["email"]]
        attended = sum(1 for r in mine if r.get("attended") is True)
        rows.append(",".join([
            user.get("name") or "",
            user.get("rollNumber") or "",
            user["email"],
            user.get("department") or "",
            user.get("year") or "",
            user.get("course") or "",
            str(len(mine)),
            str(attended),
        ]))

    return "\n".join(rows)


def import_student_data(store: RecordStore, csv_text: str) -> Tuple[Optional[Dict[str, int]], Optional[DomainError]]:
    """
    Create student records from CSV text.

    Rows are skipped (and only counted) when they have fewer than six cells,
    an email outside the college domain, or an email or roll number that
    already exists, including one from an earlier row of the same file.

    Returns:
        ({"imported": n, "skipped": m}, None)
        (None, ValidationError) if the header has fewer than six columns.
    """
    lines = (csv_text or "").split("\n")
    headers = lines[0].strip().split(",")
    if len(headers) < IMPORT_COLUMNS:
        return None, validation_error(
            "Invalid CSV format. Expected columns: Name,Roll Number,Email,Department,Year,Course"
        )

    users = store.list(USERS)
    emails = {u.get("email") for u in users}
    roll_numbers = {u.get("rollNumber") for u in users if u.get("rollNumber")}

    imported = 0
    skipped = 0
    for line in lines[1:]:
        line = line.strip()
        if not line:
            continue

        cells = [cell.strip() for cell in line.split(",")]
        if len(cells) < IMPORT_COLUMNS:
            skipped += 1
            continue

        name, roll_number, email, department, year, course = cells[:IMPORT_COLUMNS]
        email = email.lower()
        if email in emails or (roll_number and roll_number in roll_numbers):
            skipped += 1
            continue
        if not is_valid_college_email(email):
            skipped += 1
            continue

        user = new_user(
            email=email,
            name=name,
            role=Role.STUDENT.value,
            department=department,
            year=year,
            roll_number=roll_number,
            course=course,
        )
        store.put(USERS, user)
        emails.add(email)
        if roll_number:
            roll_numbers.add(roll_number)
        imported += 1

    logging.info(f"[Students] Imported {imported} students, skipped {skipped} rows")
    return {"imported": imported, "skipped": skipped}, None
