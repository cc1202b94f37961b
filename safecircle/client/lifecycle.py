"""SOS lifecycle: countdown, capture, local queue, remote sync and retries.

State machine per record::

    queued -> syncing -> synced
                      -> failed -> syncing (retry)

Once ``send()`` has started it cannot be cancelled; only the countdown can.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from safecircle.client.context import ClientContext
from safecircle.client.local_queue import LocalQueue
from safecircle.client.location import LocationProvider, coerce_location
from safecircle.client.record_store import HttpRecordStore, RecordStore
from safecircle.core.sos_policies import ANONYMOUS_USER_ID, LOCATION_UNAVAILABLE_WARNING
from safecircle.schemas.sos import Location, SOSRecord, SosStatus

logger = logging.getLogger(__name__)

RecordListener = Callable[[SOSRecord], Any]
WarningListener = Callable[[str], Any]

_RETRYABLE = (SosStatus.QUEUED, SosStatus.FAILED)


class PendingSos:
    """Handle for a triggered SOS. Cancellable until the countdown expires."""

    def __init__(self, countdown_seconds: float | None) -> None:
        self.countdown_seconds = countdown_seconds
        self.dispatched = False
        self._task: asyncio.Task | None = None

    def done(self) -> bool:
        return self._task is not None and self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._task is not None and self._task.cancelled()

    def cancel(self) -> bool:
        """Abort the countdown. Returns False once the SOS has been dispatched."""
        if self.dispatched or self._task is None or self._task.done():
            return False
        return self._task.cancel()

    async def wait(self) -> SOSRecord | None:
        """The queued record, or None if the countdown was cancelled."""
        if self._task is None:
            raise RuntimeError("SOS was never started")
        await asyncio.wait([self._task])
        if self._task.cancelled():
            return None
        return self._task.result()


class SosLifecycleManager:
    def __init__(
        self,
        queue: LocalQueue,
        store: RecordStore,
        location_provider: LocationProvider,
        user_id: str | None = None,
        location_timeout: float = 10.0,
        location_enabled: Callable[[], bool] | None = None,
        on_queued: RecordListener | None = None,
        on_warning: WarningListener | None = None,
        on_synced: RecordListener | None = None,
        on_sync_failed: RecordListener | None = None,
    ) -> None:
        self.queue = queue
        self.store = store
        self.location_provider = location_provider
        self.user_id = user_id or ANONYMOUS_USER_ID
        self.location_timeout = location_timeout
        self.location_enabled = location_enabled
        self.on_queued = on_queued
        self.on_warning = on_warning
        self.on_synced = on_synced
        self.on_sync_failed = on_sync_failed
        self._in_flight: PendingSos | None = None
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    def from_context(
        cls,
        ctx: ClientContext,
        queue: LocalQueue,
        location_provider: LocationProvider,
        **listeners: Any,
    ) -> "SosLifecycleManager":
        return cls(
            queue=queue,
            store=HttpRecordStore(ctx.http),
            location_provider=location_provider,
            user_id=ctx.owner_id,
            location_timeout=ctx.settings.location_timeout_seconds,
            **listeners,
        )

    def trigger(self, countdown_seconds: float | None = None) -> PendingSos:
        """Start an SOS, optionally after a cancellable countdown.

        A second trigger while one is still counting down or sending returns
        the handle already in flight.
        """
        if self._in_flight is not None and not self._in_flight.done():
            logger.info("SOS already in progress; ignoring trigger")
            return self._in_flight

        pending = PendingSos(countdown_seconds)
        pending._task = asyncio.create_task(self._run(pending))
        self._in_flight = pending
        return pending

    async def _run(self, pending: PendingSos) -> SOSRecord:
        if pending.countdown_seconds:
            await asyncio.sleep(pending.countdown_seconds)
        pending.dispatched = True
        return await asyncio.shield(self.send())

    async def send(self) -> SOSRecord:
        """Capture, queue locally and kick off the remote push.

        Returns as soon as the record is durable. Raises PersistenceError if
        the local write fails; nothing else here is fatal.
        """
        location = await self._locate()
        record = SOSRecord(user_id=self.user_id, location=location)

        await asyncio.to_thread(self.queue.append, record)
        logger.info("SOS %s queued locally", record.id)
        self._emit(self.on_queued, record)

        self._spawn(self.sync(record.id))
        return record

    async def sync(self, sos_id: str) -> SOSRecord | None:
        """Push one record if it is queued or failed. Returns its latest local state."""
        record = await asyncio.to_thread(self.queue.update, sos_id, status=SosStatus.SYNCING, from_statuses=_RETRYABLE)
        if record is None:
            logger.debug("SOS %s not pending, skipping sync", sos_id)
            return await asyncio.to_thread(self.queue.get, sos_id)

        try:
            await self.store.upsert(record)
        except asyncio.CancelledError:
            self.queue.record_failure(sos_id)
            logger.warning("SOS %s sync cancelled, marked failed", sos_id)
            raise
        except Exception as exc:  # noqa: BLE001
            record = await asyncio.to_thread(self.queue.record_failure, sos_id)
            logger.warning("SOS %s sync failed (retry_count=%s): %s", sos_id, record.retry_count, exc)
            self._emit(self.on_sync_failed, record)
            return record

        record = await asyncio.to_thread(
            self.queue.update, sos_id, status=SosStatus.SYNCED, from_statuses=(SosStatus.SYNCING,)
        )
        if record is None:
            logger.warning("SOS %s changed state during sync", sos_id)
            return await asyncio.to_thread(self.queue.get, sos_id)
        logger.info("SOS %s synced", sos_id)
        self._emit(self.on_synced, record)
        return record

    async def retry_pending(self) -> list[SOSRecord]:
        """Retry every queued or failed record. Call on foreground or user request."""
        ids = await asyncio.to_thread(lambda: [r.id for r in self.queue.list_pending()])
        if ids:
            logger.info("Retrying %s pending SOS record(s)", len(ids))
        results = []
        for sos_id in ids:
            record = await self.sync(sos_id)
            if record is not None:
                results.append(record)
        return results

    async def recover(self) -> list[SOSRecord]:
        """Startup: requeue records a dead process left in ``syncing``, then retry."""
        await asyncio.to_thread(self.queue.requeue_interrupted)
        return await self.retry_pending()

    async def wait_idle(self) -> None:
        """Wait for background sync tasks started by send()."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _locate(self) -> Location:
        if self.location_enabled is not None and not self.location_enabled():
            logger.info("Location disabled in privacy settings; sending without it")
            return Location.sentinel()
        try:
            raw = await asyncio.wait_for(
                self.location_provider.get_current_location(),
                timeout=self.location_timeout,
            )
            return coerce_location(raw)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Location unavailable (%s), using sentinel", exc.__class__.__name__)
            self._emit(self.on_warning, LOCATION_UNAVAILABLE_WARNING)
            return Location.sentinel()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Background SOS sync crashed", exc_info=task.exception())

    @staticmethod
    def _emit(listener: Callable[[Any], Any] | None, value: Any) -> None:
        if listener is None:
            return
        try:
            listener(value)
        except Exception:  # noqa: BLE001
            logger.exception("SOS listener failed")
