"""
Pydantic models for activity comments.

Comments are created over the ``/comments`` websocket; ``CommentCreate``
validates the incoming frame and ``CommentRead`` is broadcast back to
every connection watching the activity.
"""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict, field_validator

from .base import CamelModel


MAX_COMMENT_LENGTH = 1000


class CommentCreate(CamelModel):
    model_config = ConfigDict(validate_default=True)

    body: str = ""

    @field_validator("body")
    @classmethod
    def check_body(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Comment body is required")
        if len(v) > MAX_COMMENT_LENGTH:
            raise ValueError(f"Comment must be {MAX_COMMENT_LENGTH} characters or fewer")
        return v


class CommentRead(CamelModel):
    id: str
    body: str
    created_at: datetime
    user_id: str
    display_name: Optional[str] = None
    image_url: Optional[str] = None
