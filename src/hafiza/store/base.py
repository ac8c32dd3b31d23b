from __future__ import annotations

import json
from typing import Any, Protocol, runtime_checkable

from ..errors import StoreReadError, StoreWriteError
from ..logging import logger


@runtime_checkable
class KeyValueStore(Protocol):
    """Durable key-value store consumed by the scheduler and the usage ledger.

    `get` は読み込み失敗時に None を、`set` は書き込み失敗時に False を返し、
    どちらも例外を呼び出し側へ伝播させない。
    """

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> bool: ...


class JSONKeyValueStore:
    """Shared JSON encoding and failure policy for concrete backends.

    サブクラスは `_read_raw` / `_write_raw` / `_delete_raw` だけを実装し、
    StoreReadError / StoreWriteError を送出してよい。公開メソッド側で捕捉して
    警告ログへ変換する。
    """

    def _read_raw(self, key: str) -> str | None:
        raise NotImplementedError

    def _write_raw(self, key: str, text: str) -> None:
        raise NotImplementedError

    def _delete_raw(self, key: str) -> None:
        raise NotImplementedError

    def get(self, key: str) -> Any | None:
        try:
            text = self._read_raw(key)
            if text is None:
                return None
            try:
                return json.loads(text)
            except ValueError as exc:
                raise StoreReadError(key, f"corrupt JSON: {exc}") from exc
        except StoreReadError as exc:
            logger.warning("kv_read_failed", storage_key=key, reason=exc.reason)
            return None

    def set(self, key: str, value: Any) -> bool:
        try:
            try:
                text = json.dumps(value, ensure_ascii=False)
            except (TypeError, ValueError) as exc:
                raise StoreWriteError(key, f"not JSON serializable: {exc}") from exc
            self._write_raw(key, text)
        except StoreWriteError as exc:
            logger.warning(
                "kv_write_failed",
                storage_key=key,
                reason=exc.reason,
                error_type=type(exc).__name__,
            )
            return False
        return True

    def delete(self, key: str) -> bool:
        try:
            self._delete_raw(key)
        except StoreWriteError as exc:
            logger.warning("kv_delete_failed", storage_key=key, reason=exc.reason)
            return False
        return True
