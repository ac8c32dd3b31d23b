from typing import Annotated
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources.types import NoDecode


DEFAULT_DB_PATH = ".data/hafiza.sqlite3"
DEFAULT_INTERVAL_SEQUENCE: tuple[int, ...] = (5, 25, 120, 3600, 18000)


class Settings(BaseSettings):
    """Library settings loaded from environment variables.

    環境変数から読み込まれる設定クラス。
    - interval_sequence: 復習間隔のはしご（秒, 昇順）
    - quota_timezone: 利用量レジャーの日付境界に使うタイムゾーン
    - store_db_path: キーバリューストアの SQLite パス
    """

    environment: str = Field(
        default="development",
        description="Runtime environment / 実行環境",
    )

    # --- 復習スケジューラ ---
    interval_sequence: Annotated[tuple[int, ...], NoDecode] = Field(
        default=DEFAULT_INTERVAL_SEQUENCE,
        description=(
            "Ascending review intervals in seconds (comma separated) / "
            "復習間隔（秒）の昇順リスト（カンマ区切り）"
        ),
        validation_alias=AliasChoices("interval_sequence", "timer_sequence"),
    )
    review_key_prefix: str = Field(
        default="hafiza_review_v1",
        description="Store key prefix for per-item review state / 項目ごとの復習状態のキー接頭辞",
    )

    # --- 利用量レジャー ---
    usage_storage_key: str = Field(
        default="hafiza_daily_usage_v2",
        description="Store key holding the daily usage record / 日次利用量レコードのキー",
    )
    quota_timezone: str = Field(
        default="UTC",
        description="IANA timezone for the quota day boundary / 日次リセット境界のタイムゾーン",
    )
    daily_request_limit: int = Field(
        default=1500,
        description="Advisory daily request limit per principal / 主体ごとの目安となる1日の上限",
    )
    default_principal: str = Field(
        default="__default__",
        description="Principal id used when no credential is supplied / 認証情報なしの場合の主体ID",
    )
    hash_principals: bool = Field(
        default=False,
        description=(
            "Store sha256 digests instead of raw credentials as ledger keys / "
            "レジャーのキーに生の認証情報ではなく sha256 ダイジェストを使う"
        ),
    )

    # --- 永続化 ---
    store_db_path: str = Field(
        default=DEFAULT_DB_PATH,
        description="Path to SQLite key-value store (':memory:' for in-process) / KVストアのSQLiteパス",
    )

    # --- Logging ---
    log_level: str = Field(
        default="INFO",
        description="Root log level / ルートロガーのレベル",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("interval_sequence", mode="before")
    @classmethod
    def _parse_interval_sequence(cls, raw: object) -> tuple[int, ...] | object:
        """Accept `5,25,120` style strings as well as sequences.

        `.env` ではカンマ区切り文字列で渡されるため、空要素を除いて整数タプルへ変換する。
        """

        if raw is None:
            return DEFAULT_INTERVAL_SEQUENCE
        if isinstance(raw, str):
            parts = [part.strip() for part in raw.split(",")]
            return tuple(int(part) for part in parts if part)
        return raw

    @field_validator("interval_sequence", mode="after")
    @classmethod
    def _validate_interval_sequence(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value:
            raise ValueError("INTERVAL_SEQUENCE must contain at least one interval")
        if any(step <= 0 for step in value):
            raise ValueError("INTERVAL_SEQUENCE must contain positive seconds only")
        if any(a >= b for a, b in zip(value, value[1:])):
            raise ValueError("INTERVAL_SEQUENCE must be strictly ascending")
        return value

    @field_validator("quota_timezone", mode="after")
    @classmethod
    def _validate_quota_timezone(cls, value: str) -> str:
        name = (value or "").strip() or "UTC"
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"QUOTA_TIMEZONE is not a known IANA zone: {name!r}") from exc
        return name

    @field_validator("default_principal", mode="after")
    @classmethod
    def _validate_default_principal(cls, value: str) -> str:
        principal = (value or "").strip()
        if not principal:
            raise ValueError("DEFAULT_PRINCIPAL must be a non-empty string")
        return principal

    @field_validator("daily_request_limit", mode="after")
    @classmethod
    def _validate_daily_limit(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("DAILY_REQUEST_LIMIT must be a positive integer")
        return value


settings = Settings()
