from __future__ import annotations

from pydantic import ValidationError

from .config import Settings, settings as default_settings
from .logging import logger
from .models import ReviewState
from .scheduler import ReviewScheduler
from .store import KeyValueStore


class ReviewBook:
    """Persist review ladder state per item and wire UI events to the scheduler.

    スケジューラ自体はストアに触れないため、復習完了・手動リセットのイベントを
    受けて状態を読み込み、遷移させ、書き戻す役割をここに集める。
    """

    def __init__(
        self,
        store: KeyValueStore,
        scheduler: ReviewScheduler | None = None,
        settings: Settings | None = None,
    ) -> None:
        cfg = settings or default_settings
        self._store = store
        self._scheduler = scheduler or ReviewScheduler(cfg.interval_sequence)
        self._prefix = cfg.review_key_prefix

    @property
    def scheduler(self) -> ReviewScheduler:
        return self._scheduler

    def key_for(self, item_id: str) -> str:
        return f"{self._prefix}:{item_id}"

    def load(self, item_id: str) -> ReviewState:
        """保存済み状態を返す。無い・壊れている場合は先頭の段の新規状態。"""

        raw = self._store.get(self.key_for(item_id))
        if raw is None:
            return self._scheduler.new_state()
        try:
            state = ReviewState.model_validate(raw)
        except ValidationError as exc:
            logger.warning("review_state_invalid", item_id=item_id, error_count=exc.error_count())
            return self._scheduler.new_state()
        return self._scheduler.normalize(state)

    def save(self, item_id: str, state: ReviewState) -> bool:
        return self._store.set(self.key_for(item_id), state.to_blob())

    def remaining(self, item_id: str, now: int) -> int:
        return self._scheduler.remaining(self.load(item_id), now)

    def complete_review(self, item_id: str, now: int) -> ReviewState:
        """Review-completion event: advance the ladder and persist."""

        state = self._scheduler.advance(self.load(item_id), now)
        self.save(item_id, state)
        logger.info(
            "review_completed",
            item_id=item_id,
            interval_seconds=state.interval_seconds,
            step=self._scheduler.step_index(state),
        )
        return state

    def reset(self, item_id: str) -> ReviewState:
        """Manual reset event."""

        state = self._scheduler.reset()
        self.save(item_id, state)
        logger.info("review_reset", item_id=item_id)
        return state

    def forget(self, item_id: str) -> None:
        """項目削除時に保存済み状態を取り除く。"""

        delete = getattr(self._store, "delete", None)
        if delete is not None:
            delete(self.key_for(item_id))
        else:
            self._store.set(self.key_for(item_id), None)
