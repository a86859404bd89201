"""
Business logic for activities and attendance.

Activities are listed with cursor pagination on the activity date:
the cursor is the date of the first activity *not* included in the
current page, so the next page starts at ``date >= cursor``.  Every
activity carries its attendees rendered as profiles relative to the
current user.
"""

import logging
import sqlite3
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from reactivities_api.app.core.db import from_db_datetime, get_cursor, new_id, to_db_datetime, utcnow
from reactivities_api.app.core.exceptions import NotFoundError
from reactivities_api.app.schemas.activity import ActivityCreate, ActivityEdit, ActivityPage, ActivityRead
from reactivities_api.app.schemas.profile import UserProfile
from reactivities_api.app.services.profile_service import PROFILE_SELECT, row_to_profile


logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 3
MAX_PAGE_SIZE = 50

FILTER_GOING = "isGoing"
FILTER_HOST = "isHost"


def clamp_page_size(page_size: Optional[int]) -> int:
    if page_size is None:
        return DEFAULT_PAGE_SIZE
    return max(1, min(page_size, MAX_PAGE_SIZE))


class ActivityService:
    """Service for creating, listing and updating activities."""

    @classmethod
    def _load_attendees(
        cls, cursor: sqlite3.Cursor, activity_ids: Sequence[str], current_user_id: Optional[str]
    ) -> Dict[str, List[tuple]]:
        """Return ``{activity_id: [(profile, is_host), ...]}`` in join order."""
        attendees: Dict[str, List[tuple]] = {activity_id: [] for activity_id in activity_ids}
        if not activity_ids:
            return attendees
        placeholders = ", ".join("?" for _ in activity_ids)
        rows = cursor.execute(
            f"""
            SELECT aa.activity_id AS activity_id, aa.is_host AS is_host, {PROFILE_SELECT}
            FROM activity_attendees aa
            JOIN users u ON u.id = aa.user_id
            WHERE aa.activity_id IN ({placeholders})
            ORDER BY aa.date_joined ASC
            """,
            (current_user_id, *activity_ids),
        ).fetchall()
        for row in rows:
            attendees[row["activity_id"]].append((row_to_profile(row), bool(row["is_host"])))
        return attendees

    @classmethod
    def _to_read(cls, row: sqlite3.Row, attendees: List[tuple]) -> ActivityRead:
        host: Optional[UserProfile] = next((profile for profile, is_host in attendees if is_host), None)
        return ActivityRead(
            id=row["id"],
            title=row["title"],
            date=from_db_datetime(row["date"]),
            description=row["description"],
            category=row["category"],
            is_cancelled=bool(row["is_cancelled"]),
            host_display_name=host.display_name if host else None,
            host_id=host.id if host else None,
            city=row["city"],
            venue=row["venue"],
            latitude=row["latitude"],
            longitude=row["longitude"],
            attendees=[profile for profile, _ in attendees],
        )

    @classmethod
    async def list_activities(
        cls,
        current_user_id: str,
        filter: Optional[str] = None,
        start_date: Optional[datetime] = None,
        cursor: Optional[datetime] = None,
        page_size: Optional[int] = DEFAULT_PAGE_SIZE,
    ) -> ActivityPage:
        """Return one page of activities on or after ``cursor`` (or ``start_date``).

        - ``filter``: ``isGoing`` keeps activities the user attends,
          ``isHost`` those the user hosts; other values are ignored.
        - ``start_date`` defaults to now; ``cursor`` overrides it for
          subsequent pages.
        - ``page_size`` is clamped to ``MAX_PAGE_SIZE``.
        """
        size = clamp_page_size(page_size)
        since = cursor or start_date or utcnow()
        query = "SELECT * FROM activities a WHERE a.date >= ?"
        params: list = [to_db_datetime(since)]
        if filter == FILTER_GOING:
            query += " AND EXISTS (SELECT 1 FROM activity_attendees aa WHERE aa.activity_id = a.id AND aa.user_id = ?)"
            params.append(current_user_id)
        elif filter == FILTER_HOST:
            query += (
                " AND EXISTS (SELECT 1 FROM activity_attendees aa"
                " WHERE aa.activity_id = a.id AND aa.user_id = ? AND aa.is_host = 1)"
            )
            params.append(current_user_id)
        query += " ORDER BY a.date ASC, a.id ASC LIMIT ?"
        params.append(size + 1)

        with get_cursor() as db_cursor:
            rows = db_cursor.execute(query, tuple(params)).fetchall()
            next_cursor = None
            if len(rows) > size:
                next_cursor = from_db_datetime(rows[size]["date"])
                rows = rows[:size]
            attendees = cls._load_attendees(db_cursor, [row["id"] for row in rows], current_user_id)
        items = [cls._to_read(row, attendees[row["id"]]) for row in rows]
        return ActivityPage(items=items, next_cursor=next_cursor)

    @classmethod
    async def get_activity(cls, activity_id: str, current_user_id: Optional[str]) -> ActivityRead:
        with get_cursor() as cursor:
            row = cursor.execute("SELECT * FROM activities WHERE id = ?", (activity_id,)).fetchone()
            if not row:
                raise NotFoundError("Activity not found")
            attendees = cls._load_attendees(cursor, [activity_id], current_user_id)
        return cls._to_read(row, attendees[activity_id])

    @classmethod
    async def create_activity(cls, data: ActivityCreate, current_user: dict) -> str:
        """Persist a new activity with the current user as its host and return its id."""
        activity_id = new_id()
        logger.info("User %s is creating activity '%s'", current_user.get("user_id"), data.title)
        with get_cursor() as cursor:
            cursor.execute(
                """
                INSERT INTO activities (id, title, date, description, category, city, venue, latitude, longitude)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    activity_id,
                    data.title,
                    to_db_datetime(data.date),
                    data.description,
                    data.category,
                    data.city,
                    data.venue,
                    data.latitude,
                    data.longitude,
                ),
            )
            cursor.execute(
                "INSERT INTO activity_attendees (activity_id, user_id, is_host, date_joined) VALUES (?, ?, 1, ?)",
                (activity_id, current_user["user_id"], to_db_datetime(utcnow())),
            )
        return activity_id

    @classmethod
    async def edit_activity(cls, activity_id: str, data: ActivityEdit) -> None:
        with get_cursor() as cursor:
            cursor.execute(
                """
                UPDATE activities
                SET title = ?, date = ?, description = ?, category = ?, city = ?, venue = ?,
                    latitude = ?, longitude = ?
                WHERE id = ?
                """,
                (
                    data.title,
                    to_db_datetime(data.date),
                    data.description,
                    data.category,
                    data.city,
                    data.venue,
                    data.latitude,
                    data.longitude,
                    activity_id,
                ),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Activity not found")
        logger.info("Activity %s updated", activity_id)

    @classmethod
    async def delete_activity(cls, activity_id: str) -> None:
        """Delete an activity; attendees and comments go with it (ON DELETE CASCADE)."""
        with get_cursor() as cursor:
            cursor.execute("DELETE FROM activities WHERE id = ?", (activity_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("Activity not found")
        logger.info("Activity %s deleted", activity_id)

    @classmethod
    async def update_attendance(cls, activity_id: str, current_user_id: str) -> None:
        """Toggle the current user's attendance.

        A non-attendee joins, an attendee leaves, and the host toggles
        the activity's cancellation instead of leaving.
        """
        with get_cursor() as cursor:
            activity = cursor.execute(
                "SELECT id, is_cancelled FROM activities WHERE id = ?", (activity_id,)
            ).fetchone()
            if not activity:
                raise NotFoundError("Activity not found")
            attendance = cursor.execute(
                "SELECT is_host FROM activity_attendees WHERE activity_id = ? AND user_id = ?",
                (activity_id, current_user_id),
            ).fetchone()
            if attendance is None:
                cursor.execute(
                    "INSERT INTO activity_attendees (activity_id, user_id, is_host, date_joined) VALUES (?, ?, 0, ?)",
                    (activity_id, current_user_id, to_db_datetime(utcnow())),
                )
                action = "joined"
            elif attendance["is_host"]:
                cursor.execute(
                    "UPDATE activities SET is_cancelled = ? WHERE id = ?",
                    (0 if activity["is_cancelled"] else 1, activity_id),
                )
                action = "reactivated" if activity["is_cancelled"] else "cancelled"
            else:
                cursor.execute(
                    "DELETE FROM activity_attendees WHERE activity_id = ? AND user_id = ?",
                    (activity_id, current_user_id),
                )
                action = "left"
        logger.info("User %s %s activity %s", current_user_id, action, activity_id)
