from __future__ import annotations

from typing import Optional

from countdown.helpers.config_helper import ConfigHelper
from countdown.timers.models import MalformedRecord, TimerError, TimerRecord
from countdown.timers.persistence import (
    ListBackend,
    MemoryListBackend,
    PersistenceReadFailure,
    PersistenceWriteFailure,
    SQLiteListBackend,
)
from countdown.timers.store import StoreClosed, StoreNotLoaded, TimerStore

_timer_store: Optional[TimerStore] = None


def get_timer_store(backend: Optional[ListBackend] = None) -> TimerStore:
    """Return the process-wide store, building it on first use.

    The first call wires the store to ``backend`` or, by default, to the
    configured SQLite database. The store is returned unloaded; callers run
    ``load()`` once at startup.
    """
    global _timer_store
    if _timer_store is None:
        _timer_store = TimerStore(
            backend=backend or SQLiteListBackend(),
            storage_key=ConfigHelper.get_storage_key(),
        )
    return _timer_store


def reset_timer_store() -> None:
    """Close and forget the process-wide store."""
    global _timer_store
    if _timer_store is not None:
        _timer_store.close()
    _timer_store = None


__all__ = [
    "ListBackend",
    "MalformedRecord",
    "MemoryListBackend",
    "PersistenceReadFailure",
    "PersistenceWriteFailure",
    "SQLiteListBackend",
    "StoreClosed",
    "StoreNotLoaded",
    "TimerError",
    "TimerRecord",
    "TimerStore",
    "get_timer_store",
    "reset_timer_store",
]
