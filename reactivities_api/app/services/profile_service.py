"""
Business logic for user profiles, photos and followings.

Profiles are always computed relative to the current user: the
``following`` flag says whether the viewer follows the profile, and
the follower counts are derived from the ``user_followings`` join
table.  ``PROFILE_SELECT`` is shared with the activity service, which
renders attendees as profiles.
"""

import logging
import sqlite3
from typing import List, Optional

from reactivities_api.app.core.db import from_db_datetime, get_cursor, new_id, to_db_datetime, utcnow
from reactivities_api.app.core.exceptions import BadRequestError, NotFoundError
from reactivities_api.app.schemas.activity import UserActivityRead
from reactivities_api.app.schemas.profile import PhotoRead, ProfileEdit, UserProfile
from reactivities_api.app.services.photo_service import PhotoStorage


logger = logging.getLogger(__name__)

# Expects the viewer's user id as the first positional parameter and
# the users table aliased as ``u``.
PROFILE_SELECT = """
    u.id AS id,
    u.display_name AS display_name,
    u.bio AS bio,
    u.image_url AS image_url,
    EXISTS (
        SELECT 1 FROM user_followings f WHERE f.observer_id = ? AND f.target_id = u.id
    ) AS following,
    (SELECT COUNT(*) FROM user_followings f WHERE f.target_id = u.id) AS followers_count,
    (SELECT COUNT(*) FROM user_followings f WHERE f.observer_id = u.id) AS following_count
"""

FOLLOW_PREDICATES = {"followers", "followings"}


def row_to_profile(row: sqlite3.Row) -> UserProfile:
    return UserProfile(
        id=row["id"],
        display_name=row["display_name"],
        bio=row["bio"],
        image_url=row["image_url"],
        following=bool(row["following"]),
        followers_count=row["followers_count"],
        following_count=row["following_count"],
    )


class ProfileService:
    """Service for profiles, profile photos and the follow graph."""

    @classmethod
    async def get_profile(cls, user_id: str, current_user_id: Optional[str]) -> UserProfile:
        with get_cursor() as cursor:
            row = cursor.execute(
                f"SELECT {PROFILE_SELECT} FROM users u WHERE u.id = ?",
                (current_user_id, user_id),
            ).fetchone()
        if not row:
            raise NotFoundError("Profile not found")
        return row_to_profile(row)

    @classmethod
    async def edit_profile(cls, current_user_id: str, data: ProfileEdit) -> None:
        logger.info("User %s is updating their profile", current_user_id)
        with get_cursor() as cursor:
            cursor.execute(
                "UPDATE users SET display_name = ?, bio = ? WHERE id = ?",
                (data.display_name, data.bio, current_user_id),
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Profile not found")

    # ------------------------------------------------------------------
    # Photos
    # ------------------------------------------------------------------

    @classmethod
    async def list_photos(cls, user_id: str) -> List[PhotoRead]:
        with get_cursor() as cursor:
            rows = cursor.execute(
                "SELECT id, url, public_id, user_id FROM photos WHERE user_id = ? ORDER BY rowid",
                (user_id,),
            ).fetchall()
        return [PhotoRead(**dict(row)) for row in rows]

    @classmethod
    async def add_photo(
        cls,
        current_user_id: str,
        filename: str,
        content_type: Optional[str],
        data: bytes,
        storage: PhotoStorage,
    ) -> PhotoRead:
        """Upload a photo and attach it to the current user.

        The first photo a user uploads also becomes their main image.
        """
        upload = await storage.upload(filename, content_type, data)
        if upload is None:
            raise BadRequestError("Failed to upload photo")
        photo = PhotoRead(id=new_id(), url=upload.url, public_id=upload.public_id, user_id=current_user_id)
        with get_cursor() as cursor:
            cursor.execute(
                "INSERT INTO photos (id, url, public_id, user_id) VALUES (?, ?, ?, ?)",
                (photo.id, photo.url, photo.public_id, photo.user_id),
            )
            cursor.execute(
                "UPDATE users SET image_url = ? WHERE id = ? AND image_url IS NULL",
                (photo.url, current_user_id),
            )
        logger.info("User %s added photo %s", current_user_id, photo.id)
        return photo

    @classmethod
    async def delete_photo(cls, current_user_id: str, photo_id: str, storage: PhotoStorage) -> None:
        with get_cursor() as cursor:
            photo = cursor.execute(
                "SELECT id, url, public_id FROM photos WHERE id = ? AND user_id = ?",
                (photo_id, current_user_id),
            ).fetchone()
            if not photo:
                raise BadRequestError("Cannot find photo")
            user = cursor.execute("SELECT image_url FROM users WHERE id = ?", (current_user_id,)).fetchone()
            if user and user["image_url"] == photo["url"]:
                raise BadRequestError("Cannot delete main photo")
            await storage.delete(photo["public_id"])
            cursor.execute("DELETE FROM photos WHERE id = ?", (photo_id,))
        logger.info("User %s deleted photo %s", current_user_id, photo_id)

    @classmethod
    async def set_main_photo(cls, current_user_id: str, photo_id: str) -> None:
        with get_cursor() as cursor:
            photo = cursor.execute(
                "SELECT url FROM photos WHERE id = ? AND user_id = ?",
                (photo_id, current_user_id),
            ).fetchone()
            if not photo:
                raise BadRequestError("Cannot find photo")
            cursor.execute("UPDATE users SET image_url = ? WHERE id = ?", (photo["url"], current_user_id))

    # ------------------------------------------------------------------
    # Followings
    # ------------------------------------------------------------------

    @classmethod
    async def toggle_follow(cls, current_user_id: str, target_id: str) -> bool:
        """Follow or unfollow ``target_id``.  Returns True when now following."""
        if current_user_id == target_id:
            raise BadRequestError("You cannot follow yourself")
        with get_cursor() as cursor:
            target = cursor.execute("SELECT id FROM users WHERE id = ?", (target_id,)).fetchone()
            if not target:
                raise NotFoundError("Profile not found")
            existing = cursor.execute(
                "SELECT 1 FROM user_followings WHERE observer_id = ? AND target_id = ?",
                (current_user_id, target_id),
            ).fetchone()
            if existing:
                cursor.execute(
                    "DELETE FROM user_followings WHERE observer_id = ? AND target_id = ?",
                    (current_user_id, target_id),
                )
            else:
                cursor.execute(
                    "INSERT INTO user_followings (observer_id, target_id) VALUES (?, ?)",
                    (current_user_id, target_id),
                )
        logger.info("User %s %s %s", current_user_id, "unfollowed" if existing else "followed", target_id)
        return not existing

    @classmethod
    async def list_follows(cls, user_id: str, predicate: str, current_user_id: Optional[str]) -> List[UserProfile]:
        """List followers of ``user_id`` or the users it follows.

        ``predicate`` is ``followers`` or ``followings``; any other value
        yields an empty list.
        """
        if predicate not in FOLLOW_PREDICATES:
            return []
        if predicate == "followers":
            join = "JOIN user_followings uf ON uf.observer_id = u.id WHERE uf.target_id = ?"
        else:
            join = "JOIN user_followings uf ON uf.target_id = u.id WHERE uf.observer_id = ?"
        with get_cursor() as cursor:
            rows = cursor.execute(
                f"SELECT {PROFILE_SELECT} FROM users u {join} ORDER BY u.display_name",
                (current_user_id, user_id),
            ).fetchall()
        return [row_to_profile(row) for row in rows]

    # ------------------------------------------------------------------
    # Activities on a profile
    # ------------------------------------------------------------------

    @classmethod
    async def list_user_activities(cls, user_id: str, filter: Optional[str] = None) -> List[UserActivityRead]:
        """Activities a user attends: ``past``, ``hosting`` or (default) future."""
        now = to_db_datetime(utcnow())
        query = (
            "SELECT a.id, a.title, a.category, a.date FROM activities a "
            "JOIN activity_attendees aa ON aa.activity_id = a.id "
            "WHERE aa.user_id = ?"
        )
        params: list = [user_id]
        if filter == "past":
            query += " AND a.date <= ?"
            params.append(now)
        elif filter == "hosting":
            query += " AND aa.is_host = 1"
        else:
            query += " AND a.date >= ?"
            params.append(now)
        query += " ORDER BY a.date ASC"
        with get_cursor() as cursor:
            rows = cursor.execute(query, tuple(params)).fetchall()
        return [
            UserActivityRead(id=row["id"], title=row["title"], category=row["category"], date=from_db_datetime(row["date"]))
            for row in rows
        ]
