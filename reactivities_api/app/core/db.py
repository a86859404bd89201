"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), a cursor context manager that commits on
success (``get_cursor``) and applying migrations on application start
(``init_db``).  Applied migration versions are stored in the
``migrations`` table and new migrations are executed in order.

Timestamps are stored as naive UTC ISO strings with a fixed width so
that string comparison in SQL matches chronological order.
"""

import logging
import os
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .config import settings


logger = logging.getLogger(__name__)

DB_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%f"


def new_id() -> str:
    """Return a new string identifier for a row."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_db_datetime(value: datetime) -> str:
    """Normalise a datetime to the fixed-width UTC string used in the database.

    Naive datetimes are assumed to already be in UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime(DB_DATETIME_FORMAT)


def from_db_datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    try:
        parsed = datetime.strptime(value, DB_DATETIME_FORMAT)
    except ValueError:
        # Rows written by SQLite defaults (CURRENT_TIMESTAMP) use a space separator.
        parsed = datetime.fromisoformat(value)
    return parsed.replace(tzinfo=timezone.utc)


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    Rows are returned as ``sqlite3.Row`` so columns can be accessed by
    name.  Foreign key enforcement is enabled per connection, which the
    cascading deletes of attendees, comments, photos and followings
    rely on.
    """
    conn = sqlite3.connect(get_database_path())
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor, commits on success and closes the connection."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


MIGRATIONS: List[Tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE COLLATE NOCASE,
            display_name TEXT,
            bio TEXT,
            image_url TEXT,
            password TEXT,
            email_confirmed INTEGER NOT NULL DEFAULT 0,
            security_stamp TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS activities (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            date TEXT NOT NULL,
            description TEXT NOT NULL,
            category TEXT NOT NULL,
            is_cancelled INTEGER NOT NULL DEFAULT 0,
            city TEXT NOT NULL,
            venue TEXT NOT NULL,
            latitude REAL NOT NULL,
            longitude REAL NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS activity_attendees (
            activity_id TEXT NOT NULL,
            user_id TEXT NOT NULL,
            is_host INTEGER NOT NULL DEFAULT 0,
            date_joined TEXT NOT NULL,
            PRIMARY KEY (activity_id, user_id),
            FOREIGN KEY(activity_id) REFERENCES activities(id) ON DELETE CASCADE,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS photos (
            id TEXT PRIMARY KEY,
            url TEXT NOT NULL,
            public_id TEXT NOT NULL,
            user_id TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS comments (
            id TEXT PRIMARY KEY,
            body TEXT NOT NULL,
            created_at TEXT NOT NULL,
            user_id TEXT NOT NULL,
            activity_id TEXT NOT NULL,
            FOREIGN KEY(user_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY(activity_id) REFERENCES activities(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS user_followings (
            observer_id TEXT NOT NULL,
            target_id TEXT NOT NULL,
            PRIMARY KEY (observer_id, target_id),
            FOREIGN KEY(observer_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY(target_id) REFERENCES users(id) ON DELETE CASCADE
        );
        """,
    ),
    # Migration 2: indices for the common lookups
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_activities_date ON activities(date);
        CREATE INDEX IF NOT EXISTS idx_activity_attendees_user_id ON activity_attendees(user_id);
        CREATE INDEX IF NOT EXISTS idx_comments_activity_id ON comments(activity_id, created_at);
        CREATE INDEX IF NOT EXISTS idx_photos_user_id ON photos(user_id);
        CREATE INDEX IF NOT EXISTS idx_user_followings_target_id ON user_followings(target_id);
        """,
    ),
]


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any newer entries of
    ``MIGRATIONS``.  To change the schema, append a migration with an
    incremented version number.
    """
    with get_cursor() as cursor:
        cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
        cursor.execute("SELECT MAX(version) AS version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                logger.info("Applying migration %s", version)
                cursor.executescript(sql)
                cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                current_version = version
