"""Logging utilities and sanitisation helpers.

構造化ログの初期化と、機密情報を含むイベントを安全にマスクするヘルパーを
まとめて提供する。利用量レジャーの主体 ID は生の API キーであることが多く、
ログへそのまま出すと閲覧者にシークレットが露出するため、ここで一元的に
フィルタリングする。
"""

from typing import Any

import logging
import structlog
from structlog import contextvars as structlog_contextvars
from .config import settings


_SENSITIVE_KEYWORDS = ("api_key", "token", "secret", "authorization", "password", "key", "principal")
_MASK_PLACEHOLDER = "***"
# ストアのスロット名はシークレットではないため、キー名判定から外す
_PLAIN_KEYS = frozenset({"storage_key"})


def _mask_secret_value(raw: object) -> str:
    """Return a masked representation of a secret-like value.

    短い値は `***` に、一定長以上は先頭4文字+末尾4文字だけを残し中間を隠す。
    既定主体（認証情報なし）はシークレットではないためそのまま残す。
    """

    if raw is None:
        return _MASK_PLACEHOLDER
    text = str(raw).strip()
    if not text:
        return _MASK_PLACEHOLDER
    if text == settings.default_principal:
        return text
    if len(text) <= 8:
        return _MASK_PLACEHOLDER
    return f"{text[:4]}…{text[-4:]}"


def _is_sensitive_key(key: str) -> bool:
    """キー名に `api_key`/`principal` 等が含まれる場合に True を返す。"""

    lowered = key.lower()
    if lowered in _PLAIN_KEYS:
        return False
    return any(keyword in lowered for keyword in _SENSITIVE_KEYWORDS)


def _sanitize_event_dict(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Sanitize sensitive fields before rendering a log event.

    キー名が機密を示す場合は値をマスクする。ネストした dict も同様に再帰的に処理する。
    `event` 本文はキー名判定の対象外。
    """

    def _sanitize_value(value: Any, key_hint: str | None = None) -> Any:
        if isinstance(value, dict):
            return {k: _sanitize_value(v, str(k)) for k, v in value.items()}
        if key_hint and _is_sensitive_key(key_hint):
            return _mask_secret_value(value)
        return value

    for key, value in list(event_dict.items()):
        if key == "event":
            continue
        event_dict[key] = _sanitize_value(value, str(key))
    return event_dict


def configure_logging() -> None:
    """Configure structlog for library-wide logging.

    標準 logging を `settings.log_level` で初期化し、structlog で ISO タイムスタンプと
    JSON 形式の出力を有効化する。
    """
    # stdlib 側のプレフィックス（"WARNING:logger:" など）を付けない
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog_contextvars.merge_contextvars,
            _sanitize_event_dict,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


logger = structlog.get_logger()
