"""Display helpers for callers rendering scheduler and ledger values."""

from __future__ import annotations

import math

from .config import settings
from .models import ReviewState, UsageCounts
from .scheduler import ReviewScheduler

READY_LABEL = "Ready to review"


def due_label(remaining_seconds: int) -> str:
    # 分単位に切り上げる（残り 1 秒でも "1m"）
    if remaining_seconds <= 0:
        return READY_LABEL
    return f"Review in {math.ceil(remaining_seconds / 60)}m"


def ladder_progress(scheduler: ReviewScheduler, state: ReviewState) -> list[bool]:
    """One flag per ladder step, lit up to and including the current step."""

    current = scheduler.step_index(state)
    return [index <= current for index in range(len(scheduler.sequence))]


def total_requests(counts: UsageCounts) -> int:
    return counts.total


def usage_percent(counts: UsageCounts, daily_limit: int | None = None) -> float:
    """Text generation usage as a percentage of the advisory daily limit, capped at 100."""

    limit = settings.daily_request_limit if daily_limit is None else daily_limit
    if limit <= 0:
        return 100.0
    return min(counts.text_count / limit * 100.0, 100.0)
