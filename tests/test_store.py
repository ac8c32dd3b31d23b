import sqlite3

import pytest
from structlog.testing import capture_logs

from hafiza.config import Settings
from hafiza.store import InMemoryKeyValueStore, KeyValueStore, SQLiteKeyValueStore, create_store


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path):
    if request.param == "memory":
        return InMemoryKeyValueStore()
    return SQLiteKeyValueStore(str(tmp_path / "nested" / "kv.sqlite3"))


def test_missing_key_reads_as_none(any_store):
    assert any_store.get("absent") is None


def test_values_persist_as_json(any_store):
    assert any_store.set("k", {"date": "2024-01-01", "keys": {"ş": {"textCount": 1}}})
    assert any_store.get("k") == {"date": "2024-01-01", "keys": {"ş": {"textCount": 1}}}

    assert any_store.set("k", [1, 2])
    assert any_store.get("k") == [1, 2]


def test_delete_removes_value(any_store):
    any_store.set("k", 1)

    assert any_store.delete("k")
    assert any_store.get("k") is None


def test_unserializable_value_is_a_logged_write_failure(any_store):
    with capture_logs() as logs:
        ok = any_store.set("k", {"when": object()})

    assert ok is False
    assert any_store.get("k") is None
    assert logs[-1]["event"] == "kv_write_failed"
    assert logs[-1]["log_level"] == "warning"
    assert logs[-1]["error_type"] == "StoreWriteError"


def test_capacity_exceeded_is_a_logged_write_failure():
    store = InMemoryKeyValueStore(capacity_bytes=32)
    assert store.set("a", "x")

    with capture_logs() as logs:
        ok = store.set("b", "y" * 64)

    assert ok is False
    assert store.get("a") == "x"
    assert store.get("b") is None
    assert logs[-1]["error_type"] == "StoreCapacityError"


def test_corrupt_sqlite_blob_reads_as_none(tmp_path):
    path = tmp_path / "kv.sqlite3"
    store = SQLiteKeyValueStore(str(path))
    conn = sqlite3.connect(path)
    with conn:
        conn.execute(
            "INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?);",
            ("broken", "{not json", "2024-01-01T00:00:00+00:00"),
        )
    conn.close()

    with capture_logs() as logs:
        assert store.get("broken") is None

    assert logs[-1]["event"] == "kv_read_failed"


def test_sqlite_store_survives_reopen(tmp_path):
    path = str(tmp_path / "kv.sqlite3")
    SQLiteKeyValueStore(path).set("k", {"intervalSeconds": 25})

    assert SQLiteKeyValueStore(path).get("k") == {"intervalSeconds": 25}


def test_create_store_follows_settings(tmp_path):
    memory = create_store(Settings(_env_file=None, store_db_path=":memory:"))
    sqlite_store = create_store(Settings(_env_file=None, store_db_path=str(tmp_path / "a.sqlite3")))

    assert isinstance(memory, InMemoryKeyValueStore)
    assert isinstance(sqlite_store, SQLiteKeyValueStore)
    assert isinstance(sqlite_store, KeyValueStore)
