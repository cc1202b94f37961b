"""Emergency circle member model."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from safecircle.db.base import Base


class CircleMember(Base):
    """A contact in one owner's emergency circle."""

    __tablename__ = "circle_members"
    __table_args__ = (UniqueConstraint("owner_id", "phone_number", name="uq_circle_owner_phone"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str] = mapped_column(String(32), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="Friends")
    profile_picture: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    is_registered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    added_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
