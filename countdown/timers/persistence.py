from __future__ import annotations

import json
import os
import sqlite3
import threading
from typing import Dict, List, Optional, Protocol, Sequence, Union

from db.db import get_connection
from countdown.helpers.logging_helper import log_debug, log_module_import
from countdown.timers.models import TimerError

log_module_import(__name__)

TABLE_NAME = "string_lists"


class PersistenceReadFailure(TimerError):
    """Raised when the persisted list cannot be read."""


class PersistenceWriteFailure(TimerError):
    """Raised when the persisted list could not be written."""


class ListBackend(Protocol):
    def get_list(self, key: str) -> Optional[List[str]]: ...

    def set_list(self, key: str, values: Sequence[str]) -> None: ...


class SQLiteListBackend:
    """Key/value store of string lists kept in one SQLite table.

    Each key maps to a single row whose payload is a JSON array, so replacing
    a list is one statement and readers never see a half-written list.
    Connections are opened per call and closed right after.
    """

    def __init__(self, db_path: Union[str, os.PathLike, None] = None) -> None:
        self._db_path = db_path
        try:
            self._ensure_schema()
        except sqlite3.Error as exc:
            # Surfaced again by the first read or write.
            log_debug(f"Schema not ready yet: {exc}")

    def _connect(self) -> sqlite3.Connection:
        return get_connection(self._db_path)

    def _ensure_schema(self) -> None:
        conn = self._connect()
        try:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                    key TEXT PRIMARY KEY,
                    payload_json TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def get_list(self, key: str) -> Optional[List[str]]:
        try:
            self._ensure_schema()
            conn = self._connect()
            try:
                row = conn.execute(
                    f"SELECT payload_json FROM {TABLE_NAME} WHERE key = ?",
                    (key,),
                ).fetchone()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceReadFailure(f"Could not read list {key!r}: {exc}") from exc

        if row is None:
            return None

        try:
            values = json.loads(row[0])
        except (TypeError, ValueError) as exc:
            raise PersistenceReadFailure(f"List {key!r} holds invalid JSON: {exc}") from exc
        if not isinstance(values, list) or not all(isinstance(value, str) for value in values):
            raise PersistenceReadFailure(f"List {key!r} is not a JSON array of strings")
        return values

    def set_list(self, key: str, values: Sequence[str]) -> None:
        payload = json.dumps(list(values), ensure_ascii=False)
        try:
            self._ensure_schema()
            conn = self._connect()
            try:
                with conn:
                    conn.execute(
                        f"INSERT OR REPLACE INTO {TABLE_NAME} (key, payload_json) VALUES (?, ?)",
                        (key, payload),
                    )
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceWriteFailure(f"Could not write list {key!r}: {exc}") from exc


class MemoryListBackend:
    """In-process backend; contents last as long as the object."""

    def __init__(self, initial: Optional[Dict[str, Sequence[str]]] = None) -> None:
        self._lock = threading.Lock()
        self._lists: Dict[str, List[str]] = {key: list(values) for key, values in (initial or {}).items()}

    def get_list(self, key: str) -> Optional[List[str]]:
        with self._lock:
            values = self._lists.get(key)
            return None if values is None else list(values)

    def set_list(self, key: str, values: Sequence[str]) -> None:
        with self._lock:
            self._lists[key] = list(values)


__all__ = [
    "ListBackend",
    "MemoryListBackend",
    "PersistenceReadFailure",
    "PersistenceWriteFailure",
    "SQLiteListBackend",
]
