"""Emergency circle schemas."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class CircleCategory(str, Enum):
    SIBLING = "Sibling"
    FRIENDS = "Friends"
    FAMILY = "Family"
    EMERGENCY = "Emergency"
    OTHER = "Other"


class CircleMemberCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    phone_number: str = Field(min_length=1, max_length=32)
    category: CircleCategory = CircleCategory.FRIENDS
    profile_picture: str | None = None

    @field_validator("name", "phone_number")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class CircleMemberResponse(BaseModel):
    id: str
    name: str
    phone_number: str
    category: CircleCategory
    profile_picture: str | None
    is_registered: bool
    added_at: datetime

    model_config = {"from_attributes": True}
