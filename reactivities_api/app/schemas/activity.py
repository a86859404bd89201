"""
Pydantic models for activity data.

``ActivityBase`` carries the editable fields together with their
validation rules; ``ActivityCreate`` and ``ActivityEdit`` are the
request bodies and ``ActivityRead`` is the detail representation
returned to clients.  Validation messages are surfaced verbatim in
the 400 response produced by the global validation handler.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from .base import CamelModel
from .profile import UserProfile


MAX_TITLE_LENGTH = 100


def _require_text(value: Optional[str], message: str) -> str:
    if value is None or not value.strip():
        raise ValueError(message)
    return value.strip()


class ActivityBase(CamelModel):
    # Missing fields default to empty values so that the field
    # validators below report a readable message instead of pydantic's
    # generic "Field required".
    model_config = ConfigDict(validate_default=True)

    title: str = Field("", examples=["Future Activity 1"])
    date: Optional[datetime] = Field(None, examples=["2030-09-01T19:00:00Z"])
    description: str = Field("", examples=["Drinks with friends"])
    category: str = Field("", examples=["drinks"])
    city: str = Field("", examples=["London"])
    venue: str = Field("", examples=["The Lamb and Flag"])
    latitude: Optional[float] = Field(None, examples=[51.5117])
    longitude: Optional[float] = Field(None, examples=[-0.1257])

    @field_validator("title")
    @classmethod
    def check_title(cls, v: str) -> str:
        v = _require_text(v, "Title is required")
        if len(v) > MAX_TITLE_LENGTH:
            raise ValueError(f"Title must not exceed {MAX_TITLE_LENGTH} characters")
        return v

    @field_validator("description")
    @classmethod
    def check_description(cls, v: str) -> str:
        return _require_text(v, "Description is required")

    @field_validator("category")
    @classmethod
    def check_category(cls, v: str) -> str:
        return _require_text(v, "Category is required")

    @field_validator("city")
    @classmethod
    def check_city(cls, v: str) -> str:
        return _require_text(v, "City is required")

    @field_validator("venue")
    @classmethod
    def check_venue(cls, v: str) -> str:
        return _require_text(v, "Venue is required")

    @field_validator("date")
    @classmethod
    def check_date(cls, v: Optional[datetime]) -> datetime:
        if v is None:
            raise ValueError("Date is required")
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        if v <= datetime.now(timezone.utc):
            raise ValueError("Date must be in the future")
        return v.astimezone(timezone.utc)

    @field_validator("latitude")
    @classmethod
    def check_latitude(cls, v: Optional[float]) -> float:
        if v is None:
            raise ValueError("Latitude is required")
        if not -90 <= v <= 90:
            raise ValueError("Latitude must be between -90 and 90")
        return v

    @field_validator("longitude")
    @classmethod
    def check_longitude(cls, v: Optional[float]) -> float:
        if v is None:
            raise ValueError("Longitude is required")
        if not -180 <= v <= 180:
            raise ValueError("Longitude must be between -180 and 180")
        return v


class ActivityCreate(ActivityBase):
    """Schema for creating an activity.  The creator becomes its host."""


class ActivityEdit(ActivityBase):
    """Schema for editing an activity.

    The identifier comes from the route; a body ``id`` is accepted for
    client compatibility and ignored.
    """

    id: Optional[str] = None


class ActivityRead(CamelModel):
    """Activity details including host and attendee profiles."""

    id: str
    title: str
    date: datetime
    description: str
    category: str
    is_cancelled: bool = False
    host_display_name: Optional[str] = None
    host_id: Optional[str] = None
    city: str
    venue: str
    latitude: float
    longitude: float
    attendees: List[UserProfile] = []


class ActivityPage(CamelModel):
    """One page of the activity list with the cursor for the next page."""

    items: List[ActivityRead]
    next_cursor: Optional[datetime] = None


class UserActivityRead(CamelModel):
    """Compact activity representation used on profile pages."""

    id: str
    title: str
    category: str
    date: datetime
