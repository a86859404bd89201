"""
Demo data for development databases.

``seed_data`` creates three users (Bob, Tom and Jane, password
``Pa$$w0rd``) when the users table is empty, and ten activities with
hosts and attendees when there are no activities yet.  Dates are
relative to the moment of seeding: two activities lie in the past and
eight in the future.
"""

import logging
from datetime import timedelta
from typing import List, Tuple

from .db import get_cursor, new_id, to_db_datetime, utcnow
from .security import hash_password, new_security_stamp


logger = logging.getLogger(__name__)

SEED_PASSWORD = "Pa$$w0rd"

SEED_USERS = [
    ("Bob", "bob@test.com"),
    ("Tom", "tom@test.com"),
    ("Jane", "jane@test.com"),
]

# (title, months from now, description, category, city, venue, latitude, longitude,
#  [(user index, is_host), ...])
SEED_ACTIVITIES: List[Tuple] = [
    (
        "Past Activity 1", -2, "Activity 2 months ago", "drinks", "London",
        "The Lamb and Flag, 33, Rose Street, Seven Dials, Covent Garden, London, Greater London, England, "
        "WC2E 9EB, United Kingdom",
        51.51171665, -0.1256611057818921, [(0, True), (1, False)],
    ),
    (
        "Past Activity 2", -1, "Activity 1 month ago", "culture", "Paris",
        "Louvre Museum, Rue Saint-Honoré, Quartier du Palais Royal, 1st Arrondissement, Paris, Ile-de-France, "
        "Metropolitan France, 75001, France",
        48.8611473, 2.33802768704666, [(1, True), (2, False), (0, False)],
    ),
    (
        "Future Activity 1", 1, "Activity 1 month in future", "culture", "London",
        "Natural History Museum", 51.496510900000004, -0.17600190725447445, [(2, True)],
    ),
    (
        "Future Activity 2", 2, "Activity 2 months in future", "music", "London",
        "The O2", 51.502936649999995, 0.0032029278126681844, [(0, True), (2, False)],
    ),
    (
        "Future Activity 3", 3, "Activity 3 months in future", "drinks", "London",
        "The Mayflower", 51.501778, -0.053577, [(1, True)],
    ),
    (
        "Future Activity 4", 4, "Activity 4 months in future", "drinks", "London",
        "The Blackfriar", 51.512146650000005, -0.10364680647106028, [(2, True), (0, False)],
    ),
    (
        "Future Activity 5", 5, "Activity 5 months in future", "culture", "London",
        "Sherlock Holmes Museum, 221b, Baker Street, Marylebone, London, Greater London, England, NW1 6XE, "
        "United Kingdom",
        51.5237629, -0.1584743, [(0, True)],
    ),
    (
        "Future Activity 6", 6, "Activity 6 months in future", "music", "London",
        "Roundhouse, Chalk Farm Road, Maitland Park, Chalk Farm, London Borough of Camden, London, "
        "Greater London, England, NW1 8EH, United Kingdom",
        51.5432505, -0.15197608174931165, [(1, True), (0, False)],
    ),
    (
        "Future Activity 7", 7, "Activity 7 months in future", "travel", "London",
        "River Thames, England, United Kingdom", 51.5575525, -0.781404, [(2, True), (1, False)],
    ),
    (
        "Future Activity 8", 8, "Activity 8 months in future", "film", "London",
        "Odeon Leicester Square", 51.5575525, -0.781404, [(0, True)],
    ),
]


def seed_data() -> None:
    """Insert demo users and activities into an empty database."""
    now = utcnow()
    with get_cursor() as cursor:
        if cursor.execute("SELECT COUNT(*) AS count FROM users").fetchone()["count"] == 0:
            for display_name, email in SEED_USERS:
                cursor.execute(
                    """
                    INSERT INTO users (id, email, display_name, password, email_confirmed, security_stamp)
                    VALUES (?, ?, ?, ?, 1, ?)
                    """,
                    (new_id(), email, display_name, hash_password(SEED_PASSWORD), new_security_stamp()),
                )
            logger.info("Seeded %d users", len(SEED_USERS))

        if cursor.execute("SELECT COUNT(*) AS count FROM activities").fetchone()["count"] > 0:
            return

        user_ids = []
        for _, email in SEED_USERS:
            row = cursor.execute("SELECT id FROM users WHERE email = ?", (email,)).fetchone()
            if row is None:
                logger.warning("Seed user %s is missing; skipping activity seed", email)
                return
            user_ids.append(row["id"])

        for title, months, description, category, city, venue, lat, lng, attendees in SEED_ACTIVITIES:
            activity_id = new_id()
            cursor.execute(
                """
                INSERT INTO activities (id, title, date, description, category, city, venue, latitude, longitude)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    activity_id,
                    title,
                    to_db_datetime(now + timedelta(days=30 * months)),
                    description,
                    category,
                    city,
                    venue,
                    lat,
                    lng,
                ),
            )
            for index, is_host in attendees:
                cursor.execute(
                    "INSERT INTO activity_attendees (activity_id, user_id, is_host, date_joined) VALUES (?, ?, ?, ?)",
                    (activity_id, user_ids[index], 1 if is_host else 0, to_db_datetime(now)),
                )
        logger.info("Seeded %d activities", len(SEED_ACTIVITIES))
