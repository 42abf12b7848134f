"""
Key-value backends for the server-mode record store.

Both backends expose the same four calls:
- get(key)
- set(key, value)
- delete(key)
- get_by_prefix(prefix) / scan(prefix)

Values are JSON-compatible dicts. Scans return entries in insertion order.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from psycopg2.extras import Json

from campus_events.database.db_connection import get_db

KV_TABLE = "kv_store"


class MemoryKV:
    """
    In-process key-value backend. Used for development and tests.
    """

    def __init__(self) -> None:
        self._data: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._data.get(key)
        return dict(value) if value is not None else None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        self._data[key] = dict(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def scan(self, prefix: str) -> List[Tuple[str, Dict[str, Any]]]:
        return [(k, dict(v)) for k, v in self._data.items() if k.startswith(prefix)]

    def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        return [value for _, value in self.scan(prefix)]


def _like_pattern(prefix: str) -> str:
    """
    Escape LIKE wildcards so ids containing '_' or '%' match literally.
    """
    escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped + "%"


class PostgresKV:
    """
    Key-value backend stored in a single PostgreSQL table:

        kv_store(key TEXT PRIMARY KEY, value JSONB, created_at TIMESTAMP)

    Every call opens its own connection through get_db(); there are no
    multi-key transactions (last write wins).
    """

    def __init__(self, table: str = KV_TABLE) -> None:
        self.table = table

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        sql = f"SELECT value FROM {self.table} WHERE key = %s;"
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (key,))
                row = cur.fetchone()
        return dict(row["value"]) if row else None

    def set(self, key: str, value: Dict[str, Any]) -> None:
        sql = f"""
            INSERT INTO {self.table} (key, value)
            VALUES (%s, %s)
            ON CONFLICT (key)
            DO UPDATE SET value = EXCLUDED.value;
        """
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (key, Json(value)))
                conn.commit()

    def delete(self, key: str) -> None:
        sql = f"DELETE FROM {self.table} WHERE key = %s;"
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (key,))
                conn.commit()

    def scan(self, prefix: str) -> List[Tuple[str, Dict[str, Any]]]:
        sql = f"""
            SELECT key, value FROM {self.table}
            WHERE key LIKE %s
            ORDER BY created_at ASC, key ASC;
        """
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, (_like_pattern(prefix),))
                rows = cur.fetchall()
        logging.debug(f"[KV] scan {prefix!r} -> {len(rows)} rows")
        return [(row["key"], dict(row["value"])) for row in rows]

    def get_by_prefix(self, prefix: str) -> List[Dict[str, Any]]:
        return [value for _, value in self.scan(prefix)]
