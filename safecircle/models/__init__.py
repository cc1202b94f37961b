"""SQLAlchemy models."""

from __future__ import annotations

from safecircle.models.circle_member import CircleMember
from safecircle.models.payment import PaymentLedgerEntry
from safecircle.models.sos_record import SosRecord
from safecircle.models.user_profile import UserProfile

__all__ = [
    "CircleMember",
    "PaymentLedgerEntry",
    "SosRecord",
    "UserProfile",
]
