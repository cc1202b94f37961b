"""Remote SOS record store API tests."""

from datetime import datetime, timedelta, timezone

import pytest

from safecircle.core.errors import ValidationError
from safecircle.models.sos_record import SosRecord
from safecircle.schemas.sos import Location, SOSRecord, SosStatus
from safecircle.services.sos_record_service import upsert_sos_record
from tests.conftest import TestingSessionLocal


def _record(user_id="u1", minutes_ago=0, **kwargs):
    created = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
    return SOSRecord(user_id=user_id, created_at=created, **kwargs)


def _put(client, record):
    return client.put(f"/users/{record.user_id}/sos/{record.id}", json=record.model_dump(mode="json"))


def test_put_creates_then_redelivery_updates(client, db):
    """Re-delivering the same SOS id produces exactly one remote record."""
    record = _record(location=Location(lat=-15.41, lng=28.28, accuracy=9.5), status=SosStatus.SYNCING)

    first = _put(client, record)
    second = _put(client, record)

    assert first.status_code == 201
    assert second.status_code == 200
    assert db.query(SosRecord).count() == 1
    body = second.json()
    assert body["id"] == record.id
    assert body["location"] == {"lat": -15.41, "lng": 28.28, "accuracy": 9.5}
    assert body["resolution"] == "in_progress"


def test_redelivery_keeps_created_at_and_highest_retry_count(client, db):
    record = _record(minutes_ago=5, retry_count=2)
    _put(client, record)

    later = record.model_copy(update={"created_at": datetime.now(timezone.utc), "retry_count": 1})
    body = _put(client, later).json()

    assert body["retry_count"] == 2
    stored = datetime.fromisoformat(body["created_at"]).replace(tzinfo=timezone.utc)
    assert abs((stored - record.created_at).total_seconds()) < 1


def test_put_rejects_mismatched_ids(client):
    record = _record()
    other = _record()
    r = client.put(f"/users/u1/sos/{other.id}", json=record.model_dump(mode="json"))
    assert r.status_code == 400


def test_put_rejects_other_users_record(client):
    record = _record(user_id="u2")
    r = client.put(f"/users/u1/sos/{record.id}", json=record.model_dump(mode="json"))
    assert r.status_code == 400


def test_put_rejects_non_uuid_id(client):
    body = _record().model_dump(mode="json")
    body["id"] = "not-a-uuid"
    r = client.put("/users/u1/sos/not-a-uuid", json=body)
    assert r.status_code == 422


def test_sentinel_location_is_stored_as_zero(client):
    record = _record()
    body = _put(client, record).json()
    assert body["location"] == {"lat": 0.0, "lng": 0.0, "accuracy": None}


def test_list_records_newest_first_and_scoped_to_user(client):
    old = _record(minutes_ago=30)
    new = _record(minutes_ago=1)
    foreign = _record(user_id="u2")
    for r in (old, new, foreign):
        _put(client, r)

    ids = [r["id"] for r in client.get("/users/u1/sos").json()]
    assert ids == [new.id, old.id]


def test_mark_safe(client):
    record = _record()
    _put(client, record)

    r = client.post(f"/users/u1/sos/{record.id}/safe")
    assert r.status_code == 200
    assert r.json()["resolution"] == "safe"

    # a later re-delivery does not undo the resolution
    assert _put(client, record).json()["resolution"] == "safe"


def test_mark_safe_unknown_record(client):
    r = client.post(f"/users/u1/sos/{_record().id}/safe")
    assert r.status_code == 404


def _lose_insert_race(db, monkeypatch, existing):
    """Store ``existing`` from another session, then hide it from the next lookup."""
    other = TestingSessionLocal()
    try:
        upsert_sos_record(other, existing.user_id, existing.id, existing)
    finally:
        other.close()

    real_get = db.get
    calls = []

    def first_get_misses(model, key):
        calls.append(key)
        if len(calls) == 1:
            return None
        return real_get(model, key)

    monkeypatch.setattr(db, "get", first_get_misses)


def test_concurrent_redelivery_applies_incoming_fields(db, monkeypatch):
    first = _record(location=Location(lat=1.0, lng=2.0))
    _lose_insert_race(db, monkeypatch, first)
    later = first.model_copy(update={"location": Location(lat=3.0, lng=4.0, accuracy=7.0), "retry_count": 3})

    row, created = upsert_sos_record(db, later.user_id, later.id, later)

    assert created is False
    assert (row.lat, row.lng, row.accuracy) == (3.0, 4.0, 7.0)
    assert row.retry_count == 3
    assert db.query(SosRecord).count() == 1


def test_concurrent_redelivery_checks_owner(db, monkeypatch):
    first = _record(user_id="u1")
    _lose_insert_race(db, monkeypatch, first)
    intruder = first.model_copy(update={"user_id": "u2"})

    with pytest.raises(ValidationError):
        upsert_sos_record(db, "u2", intruder.id, intruder)
