"""
Database setup and demo data.

- create_kv_table(): creates the PostgreSQL table behind PostgresKV.
- initialize_default_data(): seeds an admin, a student and sample events
  into an empty store.
- migrate_email_domains(): rewrites legacy @college.edu addresses.
- clear_data(): wipes events and registrations (maintenance endpoint).

Run directly to prepare a PostgreSQL database:
    python -m campus_events.database.init_db
"""

import logging
import os
import sys
from typing import Dict, List

from dotenv import load_dotenv

from campus_events.database.db_connection import get_db
from campus_events.database.kv_store import KV_TABLE, PostgresKV
from campus_events.database.record_store import (
    CREDENTIALS,
    EVENTS,
    PENDING_EVENTS,
    REGISTRATIONS,
    USERS,
    KVRecordStore,
    RecordStore,
)
from campus_events.domain.models import COLLEGE_EMAIL_DOMAIN, now_iso

load_dotenv()

LEGACY_EMAIL_DOMAIN = "@college.edu"

CREATE_KV_TABLE_SQL = f"""
    CREATE TABLE IF NOT EXISTS {KV_TABLE} (
        key TEXT PRIMARY KEY,
        value JSONB NOT NULL,
        created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
    );
"""

DEFAULT_USERS = [
    {
        "id": "admin-1",
        "email": "admin@klu.ac.in",
        "name": "Admin User",
        "role": "admin",
    },
    {
        "id": "student-1",
        "email": "john@klu.ac.in",
        "name": "John Smith",
        "role": "student",
        "department": "Computer Science",
        "year": "3",
        "rollNumber": "CS21001",
        "course": "B.Tech Computer Science",
    },
]

SAMPLE_EVENTS = [
    {
        "id": "event_tech_symposium",
        "name": "Annual Tech Symposium",
        "description": "Technology conference with industry experts, workshops on emerging technologies and networking.",
        "category": "technical",
        "venue": "Main Auditorium",
        "date": "2027-03-15",
        "time": "09:00",
        "capacity": 150,
        "contactPerson": "Dr. Sarah Johnson",
        "contactEmail": "sarah.johnson@klu.ac.in",
    },
    {
        "id": "event_cultural_fest",
        "name": "Spring Cultural Festival",
        "description": "Performances, art exhibitions, food stalls and cultural competitions open to all departments.",
        "category": "cultural",
        "venue": "College Grounds",
        "date": "2027-04-20",
        "time": "10:00",
        "capacity": 300,
        "contactPerson": "Prof. Michael Chen",
        "contactEmail": "michael.chen@klu.ac.in",
    },
    {
        "id": "event_sports_tournament",
        "name": "Inter-Department Sports Tournament",
        "description": "Cricket, football, basketball and track events between department teams.",
        "category": "sports",
        "venue": "Sports Complex",
        "date": "2027-05-10",
        "time": "08:00",
        "capacity": 200,
        "contactPerson": "Coach David Wilson",
        "contactEmail": "david.wilson@klu.ac.in",
    },
    {
        "id": "event_ai_workshop",
        "name": "AI & Machine Learning Workshop",
        "description": "Hands-on workshop on machine learning fundamentals using Python.",
        "category": "workshop",
        "venue": "Computer Lab 1",
        "date": "2027-03-25",
        "time": "14:00",
        "capacity": 40,
        "contactPerson": "Dr. Emily Rodriguez",
        "contactEmail": "emily.rodriguez@klu.ac.in",
    },
    {
        "id": "event_career_fair",
        "name": "Career Fair",
        "description": "Meet recruiters, attend career guidance sessions and explore internships.",
        "category": "academic",
        "venue": "Exhibition Hall",
        "date": "2027-04-05",
        "time": "11:00",
        "capacity": 500,
        "contactPerson": "Ms. Lisa Thompson",
        "contactEmail": "lisa.thompson@klu.ac.in",
    },
]


def create_kv_table() -> None:
    with get_db() as conn:
        with conn.cursor() as cur:
            cur.execute(CREATE_KV_TABLE_SQL)
            conn.commit()
    logging.info(f"[DB] Table {KV_TABLE} is ready")


def _sample_event(data: Dict) -> Dict:
    return {
        **data,
        "registrationsCount": 0,
        "registeredUserIds": [],
        "status": "upcoming",
        "approvalStatus": "approved",
        "createdBy": "admin-1",
        "createdByName": "Admin User",
        "createdByRole": "admin",
        "createdAt": now_iso(),
    }


def seed_sample_events(store: RecordStore) -> int:
    """
    Add the sample events if there are no live events yet.

    Returns:
        int: Number of events written (0 if events already existed).
    """
    if store.list(EVENTS):
        return 0
    for data in SAMPLE_EVENTS:
        store.put(EVENTS, _sample_event(data))
    logging.info(f"[DB] Seeded {len(SAMPLE_EVENTS)} sample events")
    return len(SAMPLE_EVENTS)


def initialize_default_data(store: RecordStore) -> None:
    if not store.list(USERS):
        for user in DEFAULT_USERS:
            store.put(USERS, {**user, "createdAt": now_iso()})
        logging.info(f"[DB] Seeded {len(DEFAULT_USERS)} default users")
    seed_sample_events(store)


def _migrate_field(records: List[Dict], field: str, old: str, new: str) -> List[Dict]:
    changed = []
    for record in records:
        value = record.get(field) or ""
        if value.endswith(old):
            record[field] = value[: -len(old)] + new
            changed.append(record)
    return changed


def migrate_email_domains(
    store: RecordStore,
    old: str = LEGACY_EMAIL_DOMAIN,
    new: str = COLLEGE_EMAIL_DOMAIN,
) -> int:
    """
    Rewrite addresses ending in `old` to end in `new` on users, credentials, event
    contacts and registration snapshots.

    Returns:
        int: Number of records changed.
    """
    changed = 0
    for collection, field in (
        (USERS, "email"),
        (CREDENTIALS, "email"),
        (EVENTS, "contactEmail"),
        (REGISTRATIONS, "studentEmail"),
    ):
        for record in _migrate_field(store.list(collection), field, old, new):
            store.put(collection, record)
            changed += 1

    if changed:
        logging.info(f"[DB] Migrated {changed} records from {old} to {new}")
    return changed


def clear_data(store: RecordStore) -> None:
    for collection in (REGISTRATIONS, EVENTS, PENDING_EVENTS):
        store.clear(collection)
    logging.info("[DB] Cleared events and registrations")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(asctime)s - %(message)s")

    if not os.getenv("DATABASE_URL"):
        print("DATABASE_URL is not set. Nothing to initialize.")
        sys.exit(1)

    print("--- Initializing key-value store ---")
    try:
        create_kv_table()
        store = KVRecordStore(PostgresKV())
        initialize_default_data(store)
        migrate_email_domains(store)
    except Exception as e:
        print(f"Initialization FAILED: {e}")
        sys.exit(1)

    print("Initialization complete.")
