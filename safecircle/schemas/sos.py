"""SOS record schemas shared by the device core and the record store API."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from safecircle.core.sos_policies import ANONYMOUS_USER_ID, SENTINEL_LAT, SENTINEL_LNG


class SosStatus(str, Enum):
    QUEUED = "queued"
    SYNCING = "syncing"
    SYNCED = "synced"
    FAILED = "failed"


class Resolution(str, Enum):
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    SAFE = "safe"


class Location(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(default=None, ge=0)

    @classmethod
    def sentinel(cls) -> "Location":
        """{0,0}: no location was obtained."""
        return cls(lat=SENTINEL_LAT, lng=SENTINEL_LNG)

    @property
    def is_sentinel(self) -> bool:
        return self.lat == SENTINEL_LAT and self.lng == SENTINEL_LNG and self.accuracy is None


class SOSRecord(BaseModel):
    """A single distress alert and its sync metadata."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str = ANONYMOUS_USER_ID
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    location: Location = Field(default_factory=Location.sentinel)
    status: SosStatus = SosStatus.QUEUED
    retry_count: int = Field(default=0, ge=0)
    resolution: Resolution = Resolution.IN_PROGRESS

    @field_validator("id")
    @classmethod
    def validate_uuid(cls, v: str) -> str:
        try:
            return str(uuid.UUID(v))
        except ValueError as exc:
            raise ValueError("id must be a UUID") from exc

    @field_validator("created_at")
    @classmethod
    def ensure_utc(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class SosRecordResponse(BaseModel):
    """SOS record as held by the remote record store."""

    id: str
    user_id: str
    created_at: datetime
    location: Location
    retry_count: int
    resolution: Resolution
    received_at: datetime
