"""Payment ledger model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import JSON, DateTime, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from safecircle.db.base import Base


class PaymentLedgerEntry(Base):
    """One payment attempt, keyed by the provider-assigned transaction id.

    The three payload columns belong to separate channels (request, manual
    verify, webhook) and never overwrite each other; only status and
    updated_at are shared.
    """

    __tablename__ = "payments"

    transaction_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    provider: Mapped[str] = mapped_column(String(20), nullable=False)  # MobileMoney | Card
    status: Mapped[str] = mapped_column(String(64), nullable=False, default="PENDING")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    raw_response: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    verification_response: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    webhook_payload: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
