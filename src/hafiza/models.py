from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .config import settings


def normalize_non_negative_int(value: Any) -> int:
    """与えられた値を非負整数に正規化する。

    永続化された JSON は旧バージョンや手編集で壊れている可能性があるため、
    カウンタ類は読み込み時にゼロ以上へ矯正しておく。"""

    if isinstance(value, bool):
        return 0
    try:
        ivalue = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return ivalue if ivalue >= 0 else 0


class ResourceType(str, Enum):
    """Kind of generation request counted by the usage ledger."""

    text = "text"
    image = "image"


class ReviewState(BaseModel):
    """Review ladder position of a single item.

    - interval_seconds: 現在の待ち時間（秒）。はしごの要素のいずれか
    - interval_started_at: 待ち時間が始まったエポックミリ秒。None は未開始（即復習可）

    旧フォーマット（`nextTimer` / `lastTimerStartedAt`）の JSON もそのまま読み込める。
    """

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    interval_seconds: int = Field(
        default_factory=lambda: settings.interval_sequence[0],
        validation_alias=AliasChoices("interval_seconds", "intervalSeconds", "nextTimer"),
        serialization_alias="intervalSeconds",
    )
    interval_started_at: int | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "interval_started_at", "intervalStartedAt", "lastTimerStartedAt"
        ),
        serialization_alias="intervalStartedAt",
    )

    @field_validator("interval_seconds", mode="before")
    @classmethod
    def _coerce_interval(cls, value: Any) -> Any:
        if value is None:
            return settings.interval_sequence[0]
        if isinstance(value, bool):
            return 0
        try:
            return int(value)
        except (TypeError, ValueError, OverflowError):
            return 0

    @field_validator("interval_started_at", mode="before")
    @classmethod
    def _coerce_started_at(cls, value: Any) -> int | None:
        # 0 や空文字は JS 側の falsy と同じく「未開始」として扱う
        if value is None or isinstance(value, bool) or value == "":
            return None
        try:
            started = int(value)
        except (TypeError, ValueError, OverflowError):
            return None
        return started if started > 0 else None

    def to_blob(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class UsageCounts(BaseModel):
    """Per-principal request counters for one calendar day."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    text_count: int = Field(
        default=0,
        validation_alias=AliasChoices("text_count", "textCount"),
        serialization_alias="textCount",
    )
    image_count: int = Field(
        default=0,
        validation_alias=AliasChoices("image_count", "imageCount"),
        serialization_alias="imageCount",
    )

    @field_validator("text_count", "image_count", mode="before")
    @classmethod
    def _non_negative(cls, value: Any) -> int:
        return normalize_non_negative_int(value)

    @property
    def total(self) -> int:
        return self.text_count + self.image_count

    def incremented(self, resource_type: ResourceType) -> UsageCounts:
        if resource_type is ResourceType.text:
            return self.model_copy(update={"text_count": self.text_count + 1})
        return self.model_copy(update={"image_count": self.image_count + 1})


class QuotaRecord(BaseModel):
    """Daily usage record persisted as a single blob.

    保存形式は `{"date": "YYYY-MM-DD", "keys": {principal: {...}}}`。
    日付が変わったレコードは読み手側で無効として扱い、マージはしない。
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    day: date = Field(
        validation_alias=AliasChoices("day", "date"),
        serialization_alias="date",
    )
    per_principal: dict[str, UsageCounts] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("per_principal", "keys"),
        serialization_alias="keys",
    )

    @field_validator("per_principal", mode="before")
    @classmethod
    def _drop_malformed_entries(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return {}
        return {
            str(key): entry
            for key, entry in value.items()
            if isinstance(entry, (dict, UsageCounts))
        }

    def counts_for(self, principal_id: str) -> UsageCounts:
        return self.per_principal.get(principal_id) or UsageCounts()

    def to_blob(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
