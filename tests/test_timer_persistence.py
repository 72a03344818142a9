import sqlite3
from contextlib import closing

import pytest

from countdown.helpers.config_helper import ConfigHelper
from countdown.timers.persistence import (
    TABLE_NAME,
    MemoryListBackend,
    PersistenceReadFailure,
    PersistenceWriteFailure,
    SQLiteListBackend,
)


@pytest.fixture
def timers_db(monkeypatch, tmp_path):
    db_path = tmp_path / "data" / "countdown.db"

    original_get = ConfigHelper.get

    def fake_get(cls, section, key, fallback=None):
        if (section, key) == ("Database", "path"):
            return str(db_path)
        return original_get(section, key, fallback=fallback)

    monkeypatch.setattr(ConfigHelper, "get", classmethod(fake_get))
    return db_path


def test_backend_creates_database_and_table_from_config(timers_db):
    SQLiteListBackend()

    assert timers_db.exists()
    with closing(sqlite3.connect(str(timers_db))) as conn:
        row = conn.execute("SELECT name FROM sqlite_master WHERE type='table' AND name=?", (TABLE_NAME,)).fetchone()
        assert row is not None


def test_absent_key_reads_as_none(timers_db):
    backend = SQLiteListBackend()

    assert backend.get_list("timers") is None


def test_set_list_replaces_whole_list(timers_db):
    backend = SQLiteListBackend()

    backend.set_list("timers", ["a", "b", "c"])
    backend.set_list("timers", ["c", "a"])

    assert backend.get_list("timers") == ["c", "a"]


def test_empty_list_is_distinct_from_absent(timers_db):
    backend = SQLiteListBackend()

    backend.set_list("timers", [])

    assert backend.get_list("timers") == []


def test_keys_are_independent(timers_db):
    backend = SQLiteListBackend()

    backend.set_list("timers", ["one"])
    backend.set_list("archive", ["two", "three"])

    assert backend.get_list("timers") == ["one"]
    assert backend.get_list("archive") == ["two", "three"]


def test_lists_survive_a_new_backend_instance(timers_db):
    SQLiteListBackend().set_list("timers", ['{"id": "1"}'])

    assert SQLiteListBackend(timers_db).get_list("timers") == ['{"id": "1"}']


@pytest.mark.parametrize("payload", ["{broken", '{"a": 1}', '[1, 2]'])
def test_corrupt_payload_is_a_read_failure(timers_db, payload):
    backend = SQLiteListBackend()
    with closing(sqlite3.connect(str(timers_db))) as conn:
        conn.execute(f"INSERT INTO {TABLE_NAME} (key, payload_json) VALUES (?, ?)", ("timers", payload))
        conn.commit()

    with pytest.raises(PersistenceReadFailure):
        backend.get_list("timers")


def test_unopenable_database_maps_to_read_and_write_failures(tmp_path):
    # A directory cannot be opened as a database file.
    backend = SQLiteListBackend(tmp_path)

    with pytest.raises(PersistenceReadFailure):
        backend.get_list("timers")
    with pytest.raises(PersistenceWriteFailure):
        backend.set_list("timers", ["x"])


def test_memory_backend_stores_copies():
    backend = MemoryListBackend({"timers": ["a"]})
    values = ["b", "c"]

    backend.set_list("timers", values)
    values.append("d")
    read = backend.get_list("timers")
    read.append("e")

    assert backend.get_list("timers") == ["b", "c"]
    assert backend.get_list("missing") is None
