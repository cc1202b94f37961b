"""Remote SOS record store."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from safecircle.core.errors import NotFoundError, ValidationError
from safecircle.models.sos_record import SosRecord
from safecircle.schemas.sos import Location, Resolution, SOSRecord, SosRecordResponse

logger = logging.getLogger(__name__)


def to_response(row: SosRecord) -> SosRecordResponse:
    return SosRecordResponse(
        id=row.id,
        user_id=row.user_id,
        created_at=row.created_at,
        location=Location(lat=row.lat, lng=row.lng, accuracy=row.accuracy),
        retry_count=row.retry_count,
        resolution=Resolution(row.resolution),
        received_at=row.received_at,
    )


def _apply_redelivery(row: SosRecord, user_id: str, record: SOSRecord) -> None:
    if row.user_id != user_id:
        raise ValidationError("SOS record belongs to another user")
    row.retry_count = max(row.retry_count or 0, record.retry_count)


def _apply_location(row: SosRecord, record: SOSRecord) -> None:
    row.lat = record.location.lat
    row.lng = record.location.lng
    row.accuracy = record.location.accuracy


def upsert_sos_record(db: Session, user_id: str, sos_id: str, record: SOSRecord) -> tuple[SosRecord, bool]:
    """Store a device's SOS record keyed by its id. Returns (row, created).

    Re-delivery of the same id updates the existing row; created_at and the
    server-side resolution are never changed by a re-delivery.
    """
    if record.id != sos_id:
        raise ValidationError("SOS id in path and body differ")
    if record.user_id != user_id:
        raise ValidationError("SOS record belongs to another user")

    row = db.get(SosRecord, sos_id)
    created = row is None
    if row is None:
        row = SosRecord(
            id=record.id,
            user_id=record.user_id,
            created_at=record.created_at,
            resolution=record.resolution.value,
            retry_count=record.retry_count,
        )
        db.add(row)
    else:
        _apply_redelivery(row, user_id, record)

    _apply_location(row, record)
    try:
        db.commit()
    except IntegrityError:
        # same id delivered twice at once; the other insert won
        db.rollback()
        logger.info("Concurrent delivery of SOS %s, treating as re-delivery", sos_id)
        row = db.get(SosRecord, sos_id)
        created = False
        _apply_redelivery(row, user_id, record)
        _apply_location(row, record)
        db.commit()
    db.refresh(row)

    if created:
        logger.info("SOS %s stored for user %s", sos_id, user_id)
    return row, created


def list_sos_records(db: Session, user_id: str, limit: int = 100) -> list[SosRecord]:
    """All of a user's records, newest first."""
    stmt = (
        select(SosRecord)
        .where(SosRecord.user_id == user_id)
        .order_by(SosRecord.created_at.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


def mark_safe(db: Session, user_id: str, sos_id: str) -> SosRecord:
    row = db.get(SosRecord, sos_id)
    if row is None or row.user_id != user_id:
        raise NotFoundError("SOS record not found")
    row.resolution = Resolution.SAFE.value
    db.commit()
    db.refresh(row)
    return row
