"""Local durable queue tests."""

import types

import pytest

from safecircle.client.local_db import LocalBase, create_local_engine
from safecircle.client.local_queue import LocalQueue
from safecircle.core.errors import NotFoundError, PersistenceError
from safecircle.schemas.sos import Location, SOSRecord, SosStatus


def test_append_survives_reopen(tmp_path):
    """A record appended by one process is there for the next."""
    url = f"sqlite:///{tmp_path / 'device.db'}"
    record = SOSRecord(user_id="u1", location=Location(lat=-15.4, lng=28.3, accuracy=5))
    LocalQueue.open(url).append(record)

    reopened = LocalQueue.open(url)
    stored = reopened.get(record.id)
    assert stored is not None
    assert stored.status == SosStatus.QUEUED
    assert stored.retry_count == 0
    assert stored.location == record.location
    assert stored.created_at == record.created_at


def test_append_storage_failure_raises_persistence_error(tmp_path):
    engine = create_local_engine(f"sqlite:///{tmp_path / 'device.db'}")
    queue = LocalQueue(engine)
    LocalBase.metadata.drop_all(bind=engine)

    with pytest.raises(PersistenceError):
        queue.append(SOSRecord())


def test_append_same_id_twice_fails(queue):
    record = SOSRecord()
    queue.append(record)
    with pytest.raises(PersistenceError):
        queue.append(record)


def test_list_pending_is_lazy_and_in_insertion_order(queue):
    records = [SOSRecord() for _ in range(4)]
    for r in records:
        queue.append(r)
    queue.update(records[1].id, status=SosStatus.SYNCING)
    queue.update(records[1].id, status=SosStatus.SYNCED)
    queue.update(records[2].id, status=SosStatus.SYNCING)
    queue.record_failure(records[2].id)

    pending = queue.list_pending()
    assert isinstance(pending, types.GeneratorType)
    assert [r.id for r in pending] == [records[0].id, records[2].id, records[3].id]


def test_update_is_partial(queue):
    record = queue.append(SOSRecord(user_id="u1"))

    updated = queue.update(record.id, retry_count=3)

    assert updated.retry_count == 3
    assert updated.status == SosStatus.QUEUED
    assert updated.user_id == "u1"


def test_update_with_from_statuses_refuses_other_states(queue):
    record = queue.append(SOSRecord())
    queue.update(record.id, status=SosStatus.SYNCING)
    queue.update(record.id, status=SosStatus.SYNCED)

    assert queue.update(record.id, status=SosStatus.SYNCING, from_statuses=(SosStatus.QUEUED, SosStatus.FAILED)) is None
    assert queue.get(record.id).status == SosStatus.SYNCED


def test_update_unknown_id_raises(queue):
    with pytest.raises(NotFoundError):
        queue.update(SOSRecord().id, status=SosStatus.FAILED)


def test_update_rejects_negative_retry_count(queue):
    record = queue.append(SOSRecord())
    with pytest.raises(ValueError):
        queue.update(record.id, retry_count=-1)


def test_record_failure_increments_retry_count(queue):
    record = queue.append(SOSRecord())
    for expected in (1, 2):
        queue.update(record.id, status=SosStatus.SYNCING)
        failed = queue.record_failure(record.id)
        assert failed.status == SosStatus.FAILED
        assert failed.retry_count == expected


def test_record_failure_requires_syncing(queue):
    record = queue.append(SOSRecord())
    with pytest.raises(PersistenceError):
        queue.record_failure(record.id)


def test_requeue_interrupted(queue):
    a = queue.append(SOSRecord())
    b = queue.append(SOSRecord())
    queue.update(a.id, status=SosStatus.SYNCING)

    assert queue.requeue_interrupted() == 1
    assert queue.get(a.id).status == SosStatus.QUEUED
    assert queue.get(b.id).status == SosStatus.QUEUED


def test_list_all_includes_synced_and_mark_safe(queue):
    record = queue.append(SOSRecord())
    queue.update(record.id, status=SosStatus.SYNCING)
    queue.update(record.id, status=SosStatus.SYNCED)

    assert [r.id for r in queue.list_all()] == [record.id]
    assert queue.mark_safe(record.id).resolution.value == "safe"
    assert list(queue.list_pending()) == []
