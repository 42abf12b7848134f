"""
PostgreSQL connection helper.
Provides get_db() for the Postgres-backed key-value store.
"""

import logging
import os

import psycopg2
from psycopg2.extras import DictCursor
from dotenv import load_dotenv

# Load .env variables from the project root
load_dotenv()


def get_db():
    """
    Returns a new psycopg2 connection with dictionary-based row access.

    Only the `postgres` KV backend needs a database, so DATABASE_URL is
    checked here rather than at import time.

    Usage:
        with get_db() as conn:
            with conn.cursor() as cur:
                cur.execute(...)

    Returns:
        psycopg2.extensions.connection: A connection object with DictCursor factory.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
        psycopg2.Error: If connection fails.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Please set the environment variable.")

    try:
        conn = psycopg2.connect(database_url)

        # Rows come back as dictionaries (e.g., {"key": "event:1", "value": {...}})
        conn.cursor_factory = DictCursor
        return conn
    except Exception as e:
        logging.error(f"Error connecting to database: {e}")
        raise
