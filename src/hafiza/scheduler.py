from __future__ import annotations

from collections.abc import Sequence

from .config import DEFAULT_INTERVAL_SEQUENCE, settings
from .errors import InvalidSequenceError
from .logging import logger
from .models import ReviewState

DEFAULT_SEQUENCE: tuple[int, ...] = DEFAULT_INTERVAL_SEQUENCE


class ReviewScheduler:
    """Fixed escalating-interval ladder for short vocabulary drills.

    - 復習を終えるたびに待ち時間をはしごの次の段へ進める（最後の段で飽和）
    - 手動リセットで最初の段・未開始に戻す
    - 時刻は常に呼び出し側が `now`（エポックミリ秒）で渡す。内部で時計を読まない

    タイマーやコールバックは持たない。カウントダウン表示は呼び出し側が
    1 秒以下の頻度で `remaining` を呼び直して実現する。
    """

    def __init__(self, sequence: Sequence[int] | None = None) -> None:
        steps = tuple(settings.interval_sequence if sequence is None else sequence)
        if not steps:
            raise InvalidSequenceError("interval sequence must not be empty")
        if any(isinstance(step, bool) or not isinstance(step, int) or step <= 0 for step in steps):
            raise InvalidSequenceError(f"interval sequence must hold positive integers: {steps!r}")
        if any(a >= b for a, b in zip(steps, steps[1:])):
            raise InvalidSequenceError(f"interval sequence must be strictly ascending: {steps!r}")
        self._sequence = steps

    @property
    def sequence(self) -> tuple[int, ...]:
        return self._sequence

    @property
    def first(self) -> int:
        return self._sequence[0]

    @property
    def last(self) -> int:
        return self._sequence[-1]

    def new_state(self) -> ReviewState:
        return ReviewState(interval_seconds=self.first, interval_started_at=None)

    def step_index(self, state: ReviewState) -> int:
        """はしご上の位置を返す。列に無い値は 0 段目として扱う。"""

        try:
            return self._sequence.index(state.interval_seconds)
        except ValueError:
            return 0

    def normalize(self, state: ReviewState) -> ReviewState:
        """列に含まれない待ち時間（負値・0・他設定の値）を先頭の段へ矯正する。"""

        if state.interval_seconds in self._sequence:
            return state
        return state.model_copy(update={"interval_seconds": self.first})

    def remaining(self, state: ReviewState, now: int) -> int:
        """Seconds left until the item is due again (0 means ready).

        未開始なら常に 0。経過秒は切り捨てで数え、結果は [0, interval] に収める。
        """

        if state.interval_started_at is None:
            return 0
        interval = state.interval_seconds if state.interval_seconds > 0 else self.first
        elapsed = (int(now) - state.interval_started_at) // 1000
        return max(0, min(interval, interval - elapsed))

    def is_due(self, state: ReviewState, now: int) -> bool:
        return self.remaining(state, now) == 0

    def due_at(self, state: ReviewState) -> int | None:
        """Epoch milliseconds at which the item becomes due, or None if never started."""

        if state.interval_started_at is None:
            return None
        interval = state.interval_seconds if state.interval_seconds > 0 else self.first
        return state.interval_started_at + interval * 1000

    def advance(self, state: ReviewState, now: int) -> ReviewState:
        """Move one step up the ladder and restart the interval at `now`.

        レビュー完了 1 回につき 1 回だけ呼ぶ。列に無い値は 0 段目からやり直し、
        最後の段では同じ値のまま開始時刻だけ更新する。
        """

        if state.interval_seconds not in self._sequence:
            logger.debug(
                "review_state_recovered",
                interval_seconds=state.interval_seconds,
                fallback=self.first,
            )
        index = self.step_index(state)
        next_interval = self._sequence[min(index + 1, len(self._sequence) - 1)]
        return ReviewState(interval_seconds=next_interval, interval_started_at=int(now))

    def reset(self, state: ReviewState | None = None) -> ReviewState:
        """先頭の段・未開始の状態を返す。何度呼んでも同じ結果になる。"""

        return self.new_state()
