from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterator

from ..errors import StoreReadError, StoreWriteError
from .base import JSONKeyValueStore


class SQLiteKeyValueStore(JSONKeyValueStore):
    """SQLite-backed persistence for JSON blobs keyed by opaque strings."""

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._ensure_dirs()
        self._init_db()

    # --- low-level helpers ---
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path, timeout=10.0, isolation_level=None, check_same_thread=False
        )
        conn.row_factory = sqlite3.Row
        with conn:  # autocommit on pragma
            conn.execute("pragma journal_mode=WAL;")
        return conn

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_dirs(self) -> None:
        p = Path(self.db_path)
        if p.parent and not p.parent.exists():
            p.parent.mkdir(parents=True, exist_ok=True)

    def _init_db(self) -> None:
        with self._conn() as conn:
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );
                    """
                )

    # --- JSONKeyValueStore hooks ---
    def _read_raw(self, key: str) -> str | None:
        try:
            with self._conn() as conn:
                row = conn.execute("SELECT value FROM kv WHERE key = ?;", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StoreReadError(key, str(exc)) from exc
        if row is None:
            return None
        return str(row["value"])

    def _write_raw(self, key: str, text: str) -> None:
        now = datetime.now(UTC).replace(microsecond=0).isoformat()
        try:
            with self._conn() as conn:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO kv (key, value, updated_at)
                        VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET
                            value = excluded.value,
                            updated_at = excluded.updated_at;
                        """,
                        (key, text, now),
                    )
        except sqlite3.Error as exc:
            raise StoreWriteError(key, str(exc)) from exc

    def _delete_raw(self, key: str) -> None:
        try:
            with self._conn() as conn:
                with conn:
                    conn.execute("DELETE FROM kv WHERE key = ?;", (key,))
        except sqlite3.Error as exc:
            raise StoreWriteError(key, str(exc)) from exc
