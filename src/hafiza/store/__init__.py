from __future__ import annotations

from ..config import Settings, settings as default_settings
from .base import JSONKeyValueStore, KeyValueStore
from .memory import InMemoryKeyValueStore
from .sqlite import SQLiteKeyValueStore


def create_store(settings: Settings | None = None) -> JSONKeyValueStore:
    """設定に従ってキーバリューストアを構築する。

    `store_db_path` が `:memory:` ならプロセス内の辞書ストアを返す。SQLite の
    `:memory:` は接続ごとに別 DB になり永続化できないため使わない。
    """

    cfg = settings or default_settings
    path = (cfg.store_db_path or "").strip()
    if not path or path == ":memory:":
        return InMemoryKeyValueStore()
    return SQLiteKeyValueStore(db_path=path)


__all__ = [
    "InMemoryKeyValueStore",
    "JSONKeyValueStore",
    "KeyValueStore",
    "SQLiteKeyValueStore",
    "create_store",
]
