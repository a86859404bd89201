"""
Pydantic models for user profiles and photos.
"""

from typing import Optional

from pydantic import ConfigDict, Field, field_validator

from .base import CamelModel


class UserProfile(CamelModel):
    """Public profile of a user as seen by the current user.

    ``following`` is true when the current user follows this profile.
    """

    id: str
    display_name: Optional[str] = None
    bio: Optional[str] = None
    image_url: Optional[str] = None
    following: bool = False
    followers_count: int = 0
    following_count: int = 0


class ProfileEdit(CamelModel):
    model_config = ConfigDict(validate_default=True)

    display_name: str = Field("", examples=["Bob"])
    bio: Optional[str] = Field("", examples=["Likes drinks and music"])

    @field_validator("display_name")
    @classmethod
    def check_display_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("'Display Name' must not be empty.")
        return v.strip()


class PhotoRead(CamelModel):
    id: str
    url: str
    public_id: str
    user_id: str
