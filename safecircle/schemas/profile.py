"""User profile and premium entitlement schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, max_length=255)
    phone_number: str | None = Field(default=None, max_length=32)


class PremiumGrant(BaseModel):
    plan_id: str = Field(min_length=1, max_length=64)
    amount: Decimal = Field(gt=0)
    paid_at: datetime | None = None


class ProfileResponse(BaseModel):
    id: str
    full_name: str
    phone_number: str | None
    is_premium: bool
    premium_plan: str | None
    premium_start_date: datetime | None
    last_payment_amount: Decimal | None
    last_payment_date: datetime | None
    updated_at: datetime

    model_config = {"from_attributes": True}
