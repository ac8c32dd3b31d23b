"""Advisory per-day, per-principal usage ledger.

生成 API の利用回数を主体（API キーまたは既定主体）ごと・リソース種別ごとに
日単位で数える。上限で呼び出しを止めるゲートではなく、UI の進捗バー用の
記録に過ぎないため、どの操作も例外を投げず、失敗時は「利用 0」として振る舞う。
"""

from __future__ import annotations

import hashlib
import threading
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from .config import Settings, settings as default_settings
from .logging import logger
from .models import QuotaRecord, ResourceType, UsageCounts
from .store import KeyValueStore

DEFAULT_PRINCIPAL = default_settings.default_principal
_HASH_PREFIX = "sha256:"
_CREDENTIAL_PREFIX = "key:"


def resolve_principal(
    api_key: str | None,
    *,
    default_principal: str | None = None,
    hash_keys: bool = False,
) -> str:
    """Map a raw credential to the ledger's principal id.

    未指定・空白のみのキーは既定主体に寄せる。既定主体と同じ文字列の実キーは
    接頭辞を付けて区別し、匿名利用と混ざらないようにする。
    `hash_keys` を有効にするとレジャーには sha256 ダイジェストだけが残る。
    """

    sentinel = default_principal or DEFAULT_PRINCIPAL
    key = (api_key or "").strip()
    if not key:
        return sentinel
    if hash_keys:
        return _HASH_PREFIX + hashlib.sha256(key.encode("utf-8")).hexdigest()
    if key == sentinel:
        return _CREDENTIAL_PREFIX + key
    return key


class QuotaLedger:
    """Daily usage counters stored as one blob under `usage_storage_key`.

    - get: 保存日が今日でなければ書き込まずに 0 を返す（遅延リセット）
    - increment: 日付が変わっていれば旧レコードを捨てて今日の空レコードから数え直す
    - 日付境界は `quota_timezone`（既定 UTC）で get/increment 共通に判定する

    同一プロセス内の read-modify-write はロックで直列化する。別プロセスから同じ
    ストアへ同時に書く場合の更新消失は許容する。
    """

    def __init__(self, settings: Settings | None = None) -> None:
        cfg = settings or default_settings
        self._storage_key = cfg.usage_storage_key
        self._tz = ZoneInfo(cfg.quota_timezone)
        self._default_principal = cfg.default_principal
        self._hash_principals = cfg.hash_principals
        self._daily_limit = cfg.daily_request_limit
        self._lock = threading.Lock()

    @property
    def storage_key(self) -> str:
        return self._storage_key

    @property
    def daily_limit(self) -> int:
        return self._daily_limit

    def principal_for(self, api_key: str | None) -> str:
        return resolve_principal(
            api_key,
            default_principal=self._default_principal,
            hash_keys=self._hash_principals,
        )

    def day_of(self, now: int) -> date:
        """Calendar date of the epoch-millisecond instant in the ledger's timezone."""

        return datetime.fromtimestamp(int(now) / 1000, tz=self._tz).date()

    def _day_or_none(self, now: int) -> date | None:
        # datetime の範囲外の時刻は「利用 0」として扱い、呼び出し側へ例外を出さない
        try:
            return self.day_of(now)
        except (ValueError, OverflowError, OSError, TypeError) as exc:
            logger.warning("usage_clock_invalid", now=repr(now), reason=str(exc))
            return None

    def _load(self, store: KeyValueStore) -> QuotaRecord | None:
        raw: Any = store.get(self._storage_key)
        if raw is None:
            return None
        try:
            return QuotaRecord.model_validate(raw)
        except ValidationError as exc:
            logger.warning(
                "usage_record_invalid",
                storage_key=self._storage_key,
                error_count=exc.error_count(),
            )
            return None

    def get(self, store: KeyValueStore, principal_id: str, now: int) -> UsageCounts:
        """Counts for `principal_id` today; stale or missing records read as zero."""

        today = self._day_or_none(now)
        if today is None:
            return UsageCounts()
        record = self._load(store)
        if record is None or record.day != today:
            return UsageCounts()
        return record.counts_for(principal_id)

    def increment(
        self,
        store: KeyValueStore,
        resource_type: ResourceType | str,
        principal_id: str,
        now: int,
    ) -> UsageCounts:
        """Record one consumed unit and return the updated counts.

        生成リクエスト成功後に呼ばれる。未知のリソース種別は記録せず現在値を返す。
        """

        try:
            kind = ResourceType(resource_type)
        except ValueError:
            logger.warning("usage_unknown_resource", resource_type=str(resource_type))
            return self.get(store, principal_id, now)

        today = self._day_or_none(now)
        if today is None:
            return UsageCounts()
        with self._lock:
            record = self._load(store)
            if record is None or record.day != today:
                if record is not None:
                    logger.info(
                        "usage_day_rollover",
                        previous_day=record.day.isoformat(),
                        day=today.isoformat(),
                    )
                record = QuotaRecord(day=today)
            counts = record.counts_for(principal_id).incremented(kind)
            updated = QuotaRecord(
                day=today,
                per_principal={**record.per_principal, principal_id: counts},
            )
            if not store.set(self._storage_key, updated.to_blob()):
                logger.warning(
                    "usage_persist_failed",
                    principal=principal_id,
                    resource_type=kind.value,
                )
        return counts

    def remaining_quota(
        self,
        store: KeyValueStore,
        principal_id: str,
        now: int,
        daily_limit: int | None = None,
    ) -> int:
        """Advisory text requests left today (never negative).

        上限は `usage_percent` と同じくテキスト生成の回数にだけ適用する。
        """

        limit = self._daily_limit if daily_limit is None else daily_limit
        return max(0, limit - self.get(store, principal_id, now).text_count)
