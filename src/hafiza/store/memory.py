from __future__ import annotations

import threading

from ..errors import StoreCapacityError
from .base import JSONKeyValueStore


class InMemoryKeyValueStore(JSONKeyValueStore):
    """Dict-backed store keeping values as JSON text.

    JSON 文字列として保持するため、シリアライズ不能な値は実ストアと同じく
    書き込み失敗になる。`capacity_bytes` を指定するとブラウザの localStorage の
    容量超過を再現できる。
    """

    def __init__(self, capacity_bytes: int | None = None) -> None:
        self._data: dict[str, str] = {}
        self._capacity_bytes = capacity_bytes
        self._lock = threading.Lock()

    def _size_with(self, key: str, text: str) -> int:
        total = len(key.encode("utf-8")) + len(text.encode("utf-8"))
        for other_key, other_text in self._data.items():
            if other_key == key:
                continue
            total += len(other_key.encode("utf-8")) + len(other_text.encode("utf-8"))
        return total

    def _read_raw(self, key: str) -> str | None:
        with self._lock:
            return self._data.get(key)

    def _write_raw(self, key: str, text: str) -> None:
        with self._lock:
            if self._capacity_bytes is not None:
                needed = self._size_with(key, text)
                if needed > self._capacity_bytes:
                    raise StoreCapacityError(
                        key, f"capacity exceeded ({needed} > {self._capacity_bytes} bytes)"
                    )
            self._data[key] = text

    def _delete_raw(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)

    def raw(self, key: str) -> str | None:
        """Return the stored JSON text untouched (test/debug helper)."""

        return self._read_raw(key)
