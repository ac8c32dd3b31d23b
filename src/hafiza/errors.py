"""Exception hierarchy for hafiza.

スケジューラ/レジャー本体は例外を呼び出し側へ投げない。ここで定義する例外は
設定時の検証エラーと、ストア境界の内側でだけ送出・捕捉される I/O 失敗を表す。
"""

from __future__ import annotations


class HafizaError(Exception):
    """Base class for all library errors."""


class InvalidSequenceError(HafizaError, ValueError):
    """Interval sequence is empty, non-positive, or not strictly ascending."""


class StoreError(HafizaError):
    """Base class for key-value store failures."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"{key}: {reason}")
        self.key = key
        self.reason = reason


class StoreReadError(StoreError):
    """Stored blob could not be read or decoded."""


class StoreWriteError(StoreError):
    """Value could not be serialized or persisted."""


class StoreCapacityError(StoreWriteError):
    """Write rejected because the backend's capacity would be exceeded."""
