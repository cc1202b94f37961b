"""Local durable SOS queue.

A record is on disk (committed, fsync'd by SQLite) before ``append``
returns. Records are never deleted here; synced ones stay for the
"My Records" history.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone

from sqlalchemy import Engine, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from safecircle.client.local_db import QueuedSos, create_local_engine
from safecircle.core.errors import NotFoundError, PersistenceError
from safecircle.core.sos_policies import PENDING_STATUSES
from safecircle.schemas.sos import Location, Resolution, SOSRecord, SosStatus

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_row(record: SOSRecord) -> QueuedSos:
    return QueuedSos(
        id=record.id,
        user_id=record.user_id,
        created_at=record.created_at,
        lat=record.location.lat,
        lng=record.location.lng,
        accuracy=record.location.accuracy,
        status=record.status.value,
        retry_count=record.retry_count,
        resolution=record.resolution.value,
        updated_at=_utcnow(),
    )


def _to_record(row: QueuedSos) -> SOSRecord:
    return SOSRecord(
        id=row.id,
        user_id=row.user_id,
        created_at=row.created_at,
        location=Location(lat=row.lat, lng=row.lng, accuracy=row.accuracy),
        status=SosStatus(row.status),
        retry_count=row.retry_count,
        resolution=Resolution(row.resolution),
    )


class LocalQueue:
    """SQLite-backed queue of SOS records, in insertion order."""

    def __init__(self, engine: Engine) -> None:
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def open(cls, url: str) -> "LocalQueue":
        return cls(create_local_engine(url))

    def append(self, record: SOSRecord) -> SOSRecord:
        """Persist a new record. Raises PersistenceError if storage fails."""
        try:
            with self._session_factory.begin() as db:
                db.add(_to_row(record))
        except SQLAlchemyError as exc:
            logger.error("Could not queue SOS %s: %s", record.id, exc)
            raise PersistenceError(f"Could not queue SOS {record.id}") from exc
        return record

    def get(self, sos_id: str) -> SOSRecord | None:
        with self._session_factory() as db:
            row = db.execute(select(QueuedSos).where(QueuedSos.id == sos_id)).scalar_one_or_none()
            return _to_record(row) if row else None

    def list_pending(self) -> Iterator[SOSRecord]:
        """Lazily yield queued and failed records, oldest first."""
        stmt = (
            select(QueuedSos)
            .where(QueuedSos.status.in_(PENDING_STATUSES))
            .order_by(QueuedSos.seq)
            .execution_options(yield_per=50)
        )
        with self._session_factory() as db:
            for row in db.scalars(stmt):
                yield _to_record(row)

    def list_all(self) -> list[SOSRecord]:
        """Every record regardless of status, newest first."""
        stmt = select(QueuedSos).order_by(QueuedSos.created_at.desc(), QueuedSos.seq.desc())
        with self._session_factory() as db:
            return [_to_record(row) for row in db.scalars(stmt)]

    def update(
        self,
        sos_id: str,
        *,
        status: SosStatus | None = None,
        retry_count: int | None = None,
        from_statuses: Iterable[SosStatus] | None = None,
    ) -> SOSRecord | None:
        """Atomically patch status and/or retry_count of one record.

        With ``from_statuses`` the patch only applies while the record is in
        one of those statuses; None is returned when it is not.
        """
        values: dict = {"updated_at": _utcnow()}
        if status is not None:
            values["status"] = SosStatus(status).value
        if retry_count is not None:
            if retry_count < 0:
                raise ValueError("retry_count must be non-negative")
            values["retry_count"] = retry_count
        return self._patch(sos_id, values, from_statuses)

    def record_failure(self, sos_id: str) -> SOSRecord:
        """syncing -> failed, retry_count + 1, in one statement."""
        values = {
            "status": SosStatus.FAILED.value,
            "retry_count": QueuedSos.retry_count + 1,
            "updated_at": _utcnow(),
        }
        record = self._patch(sos_id, values, (SosStatus.SYNCING,))
        if record is None:
            raise PersistenceError(f"SOS {sos_id} was not syncing")
        return record

    def mark_safe(self, sos_id: str) -> SOSRecord | None:
        return self._patch(sos_id, {"resolution": Resolution.SAFE.value, "updated_at": _utcnow()}, None)

    def requeue_interrupted(self) -> int:
        """Put records left in ``syncing`` by a dead process back to ``queued``."""
        stmt = (
            update(QueuedSos)
            .where(QueuedSos.status == SosStatus.SYNCING.value)
            .values(status=SosStatus.QUEUED.value, updated_at=_utcnow())
        )
        try:
            with self._session_factory.begin() as db:
                count = db.execute(stmt).rowcount
        except SQLAlchemyError as exc:
            raise PersistenceError("Could not requeue interrupted SOS records") from exc
        if count:
            logger.info("Requeued %s interrupted SOS record(s)", count)
        return count

    def _patch(self, sos_id: str, values: dict, from_statuses: Iterable[SosStatus] | None) -> SOSRecord | None:
        stmt = update(QueuedSos).where(QueuedSos.id == sos_id).values(**values)
        if from_statuses is not None:
            stmt = stmt.where(QueuedSos.status.in_([SosStatus(s).value for s in from_statuses]))
        try:
            with self._session_factory.begin() as db:
                matched = db.execute(stmt).rowcount
                row = db.execute(select(QueuedSos).where(QueuedSos.id == sos_id)).scalar_one_or_none()
                if row is None:
                    raise NotFoundError(f"SOS {sos_id} not in local queue")
                record = _to_record(row)
        except SQLAlchemyError as exc:
            logger.error("Could not update SOS %s: %s", sos_id, exc)
            raise PersistenceError(f"Could not update SOS {sos_id}") from exc
        return record if matched else None
