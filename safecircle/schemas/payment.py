"""Payment request schemas.

Fields are optional on purpose: missing values are reported as a 400
``{"status": "error", ...}`` body by the service layer, not as a 422.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class MobileMoneyRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    phone: str | None = None
    amount: str | int | float | None = None


class VerifyRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    transaction_id: str | None = None


class CardIntentRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    amount: str | int | float | None = None
    currency: str | None = None
