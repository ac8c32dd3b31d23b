"""Pytest configuration: deterministic settings and store fixtures."""

import os

import pytest

# 設定シングルトンは import 時に環境変数を読むため、パッケージ import 前に既定値を固定する。
os.environ["INTERVAL_SEQUENCE"] = "5,25,120,3600,18000"
os.environ["QUOTA_TIMEZONE"] = "UTC"
os.environ["STORE_DB_PATH"] = ":memory:"
os.environ.setdefault("HASH_PRINCIPALS", "false")

from hafiza.store import InMemoryKeyValueStore  # noqa: E402
from tests.clock import epoch_ms  # noqa: E402


@pytest.fixture
def store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def t0() -> int:
    return epoch_ms(2024, 3, 10, 12, 0, 0)
