"""
Record store: generic get/list/put/delete over named collections.

Two interchangeable implementations:
- LocalRecordStore: one JSON array per collection inside a string mapping
  (the client-only mode). Every write re-serializes the whole collection.
- KVRecordStore: one key per record in a key-value backend, addressed by
  composite string keys and read back with prefix scans (the server mode).

Domain operations only ever talk to the RecordStore interface.
"""

import json
import logging
import os
import threading
from collections.abc import MutableMapping
from typing import Any, Dict, Iterator, List, Optional

from flask import current_app

from campus_events.database.kv_store import MemoryKV, PostgresKV

USERS = "users"
EVENTS = "events"
PENDING_EVENTS = "pending_events"
REGISTRATIONS = "registrations"
CLAIMS = "claims"
CREDENTIALS = "credentials"

COLLECTIONS = (USERS, EVENTS, PENDING_EVENTS, REGISTRATIONS, CLAIMS, CREDENTIALS)

Record = Dict[str, Any]


class RecordStore:
    """
    Base class for record stores.

    `lock` is held by domain operations that read, check and then write
    (e.g. capacity checks), so two requests in the same process cannot both
    pass a check before either writes.
    """

    def __init__(self) -> None:
        self.lock = threading.RLock()

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        raise NotImplementedError

    def list(self, collection: str) -> List[Record]:
        raise NotImplementedError

    def put(self, collection: str, record: Record) -> None:
        raise NotImplementedError

    def delete(self, collection: str, record_id: str) -> None:
        raise NotImplementedError

    def clear(self, collection: str) -> None:
        for record in self.list(collection):
            self.delete(collection, record["id"])

    def find(self, collection: str, **fields: Any) -> Optional[Record]:
        """
        Return the first record whose fields all equal the given values.
        """
        for record in self.list(collection):
            if all(record.get(k) == v for k, v in fields.items()):
                return record
        return None

    def registrations_for_event(self, event_id: str) -> List[Record]:
        return [r for r in self.list(REGISTRATIONS) if r.get("eventId") == event_id]

    def registrations_for_user(self, user_id: str) -> List[Record]:
        return [r for r in self.list(REGISTRATIONS) if r.get("userId") == user_id]


def _check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise KeyError(f"Unknown collection: {collection}")


# --- LOCAL MODE ---

class JsonFileStorage(MutableMapping):
    """
    String-to-string mapping persisted to a single JSON file.

    Behaves like browser localStorage: every assignment rewrites the file.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._data: Dict[str, str] = {}
        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as fh:
                self._data = json.load(fh)

    def _flush(self) -> None:
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(self._data, fh)

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._flush()

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)


class LocalRecordStore(RecordStore):
    """
    Record store over a string mapping, one JSON array blob per collection.
    """

    STORAGE_KEYS = {
        USERS: "sms_users",
        EVENTS: "sms_events",
        PENDING_EVENTS: "sms_pending_events",
        REGISTRATIONS: "sms_registrations",
        CLAIMS: "sms_non_cgpa_claims",
        CREDENTIALS: "sms_credentials",
    }

    def __init__(self, storage: Optional[MutableMapping] = None) -> None:
        super().__init__()
        self.storage = storage if storage is not None else {}

    def _load(self, collection: str) -> List[Record]:
        _check_collection(collection)
        return json.loads(self.storage.get(self.STORAGE_KEYS[collection]) or "[]")

    def _save(self, collection: str, records: List[Record]) -> None:
        self.storage[self.STORAGE_KEYS[collection]] = json.dumps(records)

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        return next((r for r in self._load(collection) if r.get("id") == record_id), None)

    def list(self, collection: str) -> List[Record]:
        return self._load(collection)

    def put(self, collection: str, record: Record) -> None:
        records = self._load(collection)
        for i, existing in enumerate(records):
            if existing.get("id") == record["id"]:
                records[i] = record
                break
        else:
            records.append(record)
        self._save(collection, records)

    def delete(self, collection: str, record_id: str) -> None:
        records = self._load(collection)
        self._save(collection, [r for r in records if r.get("id") != record_id])

    def clear(self, collection: str) -> None:
        _check_collection(collection)
        self._save(collection, [])


# --- SERVER MODE ---

class KVRecordStore(RecordStore):
    """
    Record store over a key-value backend (MemoryKV or PostgresKV).

    Keys:
        user:{id}, event:{id}, pending_event:{id}, claim:{id}, credential:{id}
        registration:{eventId}:{userId}
        registration:user:{userId}:{eventId}

    Each registration is written under both registration keys so it can be
    found by event or by user with a single prefix scan.
    """

    PREFIXES = {
        USERS: "user:",
        EVENTS: "event:",
        PENDING_EVENTS: "pending_event:",
        CLAIMS: "claim:",
        CREDENTIALS: "credential:",
    }
    REGISTRATION_PREFIX = "registration:"
    USER_INDEX_PREFIX = "registration:user:"

    def __init__(self, kv: Any = None) -> None:
        super().__init__()
        self.kv = kv if kv is not None else MemoryKV()

    @classmethod
    def registration_keys(cls, registration: Record) -> List[str]:
        event_id = registration["eventId"]
        user_id = registration["userId"]
        return [
            f"{cls.REGISTRATION_PREFIX}{event_id}:{user_id}",
            f"{cls.USER_INDEX_PREFIX}{user_id}:{event_id}",
        ]

    def _key(self, collection: str, record_id: str) -> str:
        _check_collection(collection)
        return f"{self.PREFIXES[collection]}{record_id}"

    def get(self, collection: str, record_id: str) -> Optional[Record]:
        if collection == REGISTRATIONS:
            return next((r for r in self.list(REGISTRATIONS) if r.get("id") == record_id), None)
        return self.kv.get(self._key(collection, record_id))

    def list(self, collection: str) -> List[Record]:
        if collection == REGISTRATIONS:
            # Only the event-keyed half, otherwise every registration shows twice
            return [
                value
                for key, value in self.kv.scan(self.REGISTRATION_PREFIX)
                if not key.startswith(self.USER_INDEX_PREFIX)
            ]
        _check_collection(collection)
        return self.kv.get_by_prefix(self.PREFIXES[collection])

    def put(self, collection: str, record: Record) -> None:
        if collection == REGISTRATIONS:
            for key in self.registration_keys(record):
                self.kv.set(key, record)
            return
        self.kv.set(self._key(collection, record["id"]), record)

    def delete(self, collection: str, record_id: str) -> None:
        if collection == REGISTRATIONS:
            registration = self.get(REGISTRATIONS, record_id)
            if registration:
                for key in self.registration_keys(registration):
                    self.kv.delete(key)
            return
        self.kv.delete(self._key(collection, record_id))

    def registrations_for_event(self, event_id: str) -> List[Record]:
        # An event id of "user" shares its prefix with the user index
        return [
            r for r in self.kv.get_by_prefix(f"{self.REGISTRATION_PREFIX}{event_id}:")
            if r.get("eventId") == event_id
        ]

    def registrations_for_user(self, user_id: str) -> List[Record]:
        return [
            r for r in self.kv.get_by_prefix(f"{self.USER_INDEX_PREFIX}{user_id}:")
            if r.get("userId") == user_id
        ]


# --- FACTORY / FLASK ACCESS ---

def create_store(
    backend: str = "kv",
    kv_backend: str = "memory",
    local_path: Optional[str] = None,
) -> RecordStore:
    """
    Build a record store from configuration values.

    Args:
        backend (str): 'kv' (server mode) or 'local' (client-only mode).
        kv_backend (str): 'memory' or 'postgres' (only for backend='kv').
        local_path (str, optional): JSON file for local mode; in-memory if None.

    Returns:
        RecordStore: The configured store.
    """
    if backend == "local":
        storage = JsonFileStorage(local_path) if local_path else {}
        logging.info(f"[Store] Using local store (path={local_path or 'memory'})")
        return LocalRecordStore(storage)

    if backend != "kv":
        raise ValueError(f"Unknown STORE_BACKEND: {backend}")

    if kv_backend == "postgres":
        logging.info("[Store] Using key-value store on PostgreSQL")
        return KVRecordStore(PostgresKV())
    if kv_backend == "memory":
        logging.info("[Store] Using in-memory key-value store")
        return KVRecordStore(MemoryKV())

    raise ValueError(f"Unknown KV_BACKEND: {kv_backend}")


def get_store() -> RecordStore:
    """
    Return the record store owned by the running Flask app.
    """
    return current_app.extensions["record_store"]
