"""
Business logic for activity comments.
"""

import logging
from typing import List

from reactivities_api.app.core.db import from_db_datetime, get_cursor, new_id, to_db_datetime, utcnow
from reactivities_api.app.core.exceptions import NotFoundError
from reactivities_api.app.schemas.comment import CommentCreate, CommentRead


logger = logging.getLogger(__name__)


class CommentService:
    """Service for reading and adding comments on an activity."""

    @classmethod
    async def list_comments(cls, activity_id: str) -> List[CommentRead]:
        """Return the comments of an activity, newest first."""
        with get_cursor() as cursor:
            if not cursor.execute("SELECT 1 FROM activities WHERE id = ?", (activity_id,)).fetchone():
                raise NotFoundError("Could not find activity")
            rows = cursor.execute(
                """
                SELECT c.id, c.body, c.created_at, c.user_id, u.display_name, u.image_url
                FROM comments c
                JOIN users u ON u.id = c.user_id
                WHERE c.activity_id = ?
                ORDER BY c.created_at DESC
                """,
                (activity_id,),
            ).fetchall()
        return [
            CommentRead(
                id=row["id"],
                body=row["body"],
                created_at=from_db_datetime(row["created_at"]),
                user_id=row["user_id"],
                display_name=row["display_name"],
                image_url=row["image_url"],
            )
            for row in rows
        ]

    @classmethod
    async def add_comment(cls, activity_id: str, current_user_id: str, data: CommentCreate) -> CommentRead:
        created_at = utcnow()
        comment_id = new_id()
        with get_cursor() as cursor:
            if not cursor.execute("SELECT 1 FROM activities WHERE id = ?", (activity_id,)).fetchone():
                raise NotFoundError("Could not find activity")
            cursor.execute(
                "INSERT INTO comments (id, body, created_at, user_id, activity_id) VALUES (?, ?, ?, ?, ?)",
                (comment_id, data.body, to_db_datetime(created_at), current_user_id, activity_id),
            )
            user = cursor.execute(
                "SELECT display_name, image_url FROM users WHERE id = ?", (current_user_id,)
            ).fetchone()
        logger.info("User %s commented on activity %s", current_user_id, activity_id)
        return CommentRead(
            id=comment_id,
            body=data.body,
            created_at=from_db_datetime(to_db_datetime(created_at)),
            user_id=current_user_id,
            display_name=user["display_name"] if user else None,
            image_url=user["image_url"] if user else None,
        )
