from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Set, Tuple

from countdown.helpers.logging_helper import (
    log_exception,
    log_function,
    log_info,
    log_module_import,
    log_warning,
)
from countdown.timers.models import IdFactory, MalformedRecord, TimerError, TimerRecord
from countdown.timers.persistence import ListBackend, PersistenceReadFailure, PersistenceWriteFailure

log_module_import(__name__)

DEFAULT_STORAGE_KEY = "timers"

Clock = Callable[[], datetime]
TimerSubscriber = Callable[[List[TimerRecord]], None]


class StoreNotLoaded(RuntimeError, TimerError):
    """Raised when the store is mutated before ``load()`` has run."""


class StoreClosed(RuntimeError, TimerError):
    """Raised when the store is used after ``close()``."""


class TimerStore:
    """Ordered collection of countdown timers backed by a list backend.

    Mutations update memory first and then write the whole collection on a
    single background worker. Writes are queued under the same lock that
    guards the collection, so they land in the order the mutations happened.
    """

    def __init__(
        self,
        backend: ListBackend,
        clock: Clock = datetime.now,
        id_factory: Optional[IdFactory] = None,
        storage_key: str = DEFAULT_STORAGE_KEY,
        executor: Optional[Executor] = None,
    ) -> None:
        self._backend = backend
        self._clock = clock
        self._id_factory = id_factory
        self._storage_key = storage_key

        self._owns_executor = executor is None
        self._executor: Executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="timer-store")
        self._closed = False

        self._lock = threading.RLock()
        self._records: List[TimerRecord] = []
        self._loaded = False
        self._subscribers: Set[TimerSubscriber] = set()

        # In-flight writes, plus the latest failure nobody has flushed yet.
        self._pending: List[Future] = []
        self._failed_write: Optional[Future] = None
        self._last_write: Optional[Future] = None

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def last_write(self) -> Optional[Future]:
        return self._last_write

    def now(self) -> datetime:
        return self._clock()

    def subscribe(self, callback: TimerSubscriber) -> None:
        self._subscribers.add(callback)
        callback(self.snapshot())

    def unsubscribe(self, callback: TimerSubscriber) -> None:
        self._subscribers.discard(callback)

    @log_function
    def load(self) -> List[TimerRecord]:
        try:
            raw_entries = self._read_entries()
        except PersistenceReadFailure as exc:
            log_exception(f"Could not read persisted timers, starting empty: {exc}")
            raw_entries = []

        records: List[TimerRecord] = []
        skipped = 0
        for position, entry in enumerate(raw_entries):
            try:
                records.append(TimerRecord.from_json(entry))
            except MalformedRecord as exc:
                skipped += 1
                log_warning(f"Skipping persisted timer #{position}: {exc}")

        with self._lock:
            self._records = records
            self._loaded = True
        log_info(f"Loaded {len(records)} timer(s) from {self._storage_key!r}, skipped {skipped}")
        self._notify_subscribers()
        return self.snapshot()

    def load_async(self) -> Future:
        """Run ``load()`` on the write worker, after any pending writes."""
        with self._lock:
            self._require_open()
            return self._executor.submit(self.load)

    def add(self, label: str, target: datetime) -> TimerRecord:
        record = TimerRecord.create(label, target, id_factory=self._id_factory)
        with self._lock:
            self._require_open()
            self._require_loaded()
            self._records.append(record)
            self._persist()
        log_info(f"Added timer {record.id} ({record.label!r}) due {record.target.isoformat()}")
        self._notify_subscribers()
        return record

    def remove(self, timer_id: str) -> bool:
        with self._lock:
            self._require_open()
            self._require_loaded()
            index = next((i for i, record in enumerate(self._records) if record.id == timer_id), None)
            if index is not None:
                del self._records[index]
            self._persist()
        if index is not None:
            log_info(f"Removed timer {timer_id}")
        else:
            log_info(f"Timer {timer_id} not found, nothing to remove")
        self._notify_subscribers()
        return index is not None

    def snapshot(self) -> List[TimerRecord]:
        with self._lock:
            return list(self._records)

    def get(self, timer_id: str) -> Optional[TimerRecord]:
        with self._lock:
            return next((record for record in self._records if record.id == timer_id), None)

    def countdowns(self, now: Optional[datetime] = None) -> List[Tuple[TimerRecord, timedelta]]:
        """Pair every timer with its remaining duration at ``now``."""
        moment = now if now is not None else self._clock()
        return [(record, record.remaining(moment)) for record in self.snapshot()]

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for issued writes; return True when none failed since the last flush."""
        with self._lock:
            pending = list(self._pending)
        done, not_done = wait(pending, timeout=timeout)
        with self._lock:
            self._pending = [future for future in self._pending if future not in done]
            failed, self._failed_write = self._failed_write, None
        return not not_done and failed is None and all(future.exception() is None for future in done)

    def close(self) -> None:
        """Stop accepting mutations, wait for queued writes, release the worker."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self.flush()
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def _require_open(self) -> None:
        if self._closed:
            raise StoreClosed("The timer store has been closed")

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise StoreNotLoaded("Call load() before adding or removing timers")

    def _read_entries(self) -> List[str]:
        try:
            return list(self._backend.get_list(self._storage_key) or [])
        except PersistenceReadFailure:
            raise
        except Exception as exc:
            raise PersistenceReadFailure(f"Could not read persisted timers: {exc}") from exc

    def _persist(self) -> Future:
        with self._lock:
            payload = [record.to_json() for record in self._records]
            future = self._executor.submit(self._write, payload)
            self._pending.append(future)
            self._last_write = future
            future.add_done_callback(self._on_write_done)
        return future

    def _write(self, payload: List[str]) -> None:
        try:
            self._backend.set_list(self._storage_key, payload)
        except PersistenceWriteFailure:
            raise
        except Exception as exc:
            raise PersistenceWriteFailure(f"Could not persist timers: {exc}") from exc

    def _on_write_done(self, future: Future) -> None:
        exc = future.exception()
        with self._lock:
            if future in self._pending:
                self._pending.remove(future)
                if exc is not None:
                    self._failed_write = future
        if exc is not None:
            log_exception(f"Persisting timers failed: {exc}", exc_info=exc)

    def _notify_subscribers(self) -> None:
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            callback(snapshot)


__all__ = ["Clock", "StoreClosed", "StoreNotLoaded", "TimerStore", "TimerSubscriber"]
