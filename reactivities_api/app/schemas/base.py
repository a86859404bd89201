"""
Shared base model for API payloads.

JSON bodies use camelCase keys (``displayName``, ``nextCursor``) to
match the single page client, while Python code keeps snake_case
attribute names.  Requests may use either form.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
