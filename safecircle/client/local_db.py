"""On-device SQLite tables for the SOS queue and privacy settings."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Engine, Float, Integer, String, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class LocalBase(DeclarativeBase):
    """Base class for device-local tables. Kept apart from the backend metadata."""

    pass


class QueuedSos(LocalBase):
    __tablename__ = "sos_queue"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)  # insertion order
    id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lng: Mapped[float] = mapped_column(Float, nullable=False)
    accuracy: Mapped[float | None] = mapped_column(Float, nullable=True)
    status: Mapped[str] = mapped_column(String(10), nullable=False, index=True)  # queued | syncing | synced | failed
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    resolution: Mapped[str] = mapped_column(String(20), nullable=False, default="in_progress")
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class StoredSetting(LocalBase):
    __tablename__ = "privacy_settings"

    key: Mapped[str] = mapped_column(String(32), primary_key=True)
    value: Mapped[bool] = mapped_column(Boolean, nullable=False)


def _sqlite_durability(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=FULL")
    cursor.close()


def create_local_engine(url: str) -> Engine:
    """Open (and create if needed) the device database."""
    engine = create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
    event.listen(engine, "connect", _sqlite_durability)
    LocalBase.metadata.create_all(bind=engine)
    return engine
