import pytest

from hafiza.errors import InvalidSequenceError
from hafiza.models import ReviewState
from hafiza.scheduler import DEFAULT_SEQUENCE, ReviewScheduler


@pytest.fixture
def scheduler() -> ReviewScheduler:
    return ReviewScheduler([5, 25, 120, 3600, 18000])


def test_default_sequence_comes_from_settings():
    assert ReviewScheduler().sequence == DEFAULT_SEQUENCE == (5, 25, 120, 3600, 18000)


def test_never_started_item_is_always_due(scheduler, t0):
    state = ReviewState(interval_seconds=3600)

    for now in (0, t0, t0 + 10**9):
        assert scheduler.remaining(state, now) == 0
        assert scheduler.is_due(state, now)
    assert scheduler.due_at(state) is None


def test_remaining_counts_down_in_whole_seconds(scheduler, t0):
    state = ReviewState(interval_seconds=25, interval_started_at=t0)

    assert scheduler.remaining(state, t0) == 25
    assert scheduler.remaining(state, t0 + 999) == 25
    assert scheduler.remaining(state, t0 + 10_000) == 15
    assert scheduler.remaining(state, t0 + 24_999) == 1
    assert scheduler.remaining(state, t0 + 25_000) == 0
    assert scheduler.remaining(state, t0 + 30_000) == 0
    assert scheduler.due_at(state) == t0 + 25_000


def test_remaining_never_exceeds_interval_for_future_start(scheduler, t0):
    state = ReviewState(interval_seconds=120, interval_started_at=t0 + 60_000)

    assert scheduler.remaining(state, t0) == 120


@pytest.mark.parametrize("offset_ms", [-5_000_000, -1, 0, 1, 4_999, 60_000, 10**10])
def test_remaining_stays_within_interval_bounds(scheduler, t0, offset_ms):
    for interval in scheduler.sequence:
        state = ReviewState(interval_seconds=interval, interval_started_at=t0)
        assert 0 <= scheduler.remaining(state, t0 + offset_ms) <= interval


def test_advance_moves_one_step_and_restarts_interval(scheduler, t0):
    state = ReviewState(interval_seconds=5, interval_started_at=None)

    advanced = scheduler.advance(state, t0)

    assert advanced.interval_seconds == 25
    assert advanced.interval_started_at == t0
    # 入力は不変
    assert state.interval_seconds == 5
    assert state.interval_started_at is None


def test_advance_is_monotonic_and_saturates(scheduler, t0):
    state = scheduler.new_state()
    seen = []
    for i in range(8):
        before = scheduler.step_index(state)
        state = scheduler.advance(state, t0 + i)
        assert scheduler.step_index(state) >= before
        seen.append(state.interval_seconds)

    assert seen == [25, 120, 3600, 18000, 18000, 18000, 18000, 18000]
    assert state.interval_started_at == t0 + 7


def test_advance_at_last_step_only_changes_start_time(scheduler, t0):
    state = ReviewState(interval_seconds=18000, interval_started_at=t0)

    advanced = scheduler.advance(state, t0 + 123_456)

    assert advanced.interval_seconds == 18000
    assert advanced.interval_started_at == t0 + 123_456


@pytest.mark.parametrize("foreign", [7, 0, -30, 99_999])
def test_advance_recovers_from_foreign_interval(scheduler, t0, foreign):
    state = ReviewState(interval_seconds=foreign, interval_started_at=t0)

    advanced = scheduler.advance(state, t0 + 1)

    assert advanced.interval_seconds == 25
    assert advanced.interval_started_at == t0 + 1


def test_reset_returns_first_step_and_clears_start(scheduler, t0):
    state = ReviewState(interval_seconds=3600, interval_started_at=t0)

    once = scheduler.reset(state)
    twice = scheduler.reset(once)

    assert once.interval_seconds == 5
    assert once.interval_started_at is None
    assert twice == once


def test_normalize_clamps_malformed_interval(scheduler, t0):
    assert scheduler.normalize(ReviewState(interval_seconds=-3)).interval_seconds == 5
    kept = ReviewState(interval_seconds=120, interval_started_at=t0)
    assert scheduler.normalize(kept) is kept


def test_negative_interval_is_treated_as_first_step_when_counting(scheduler, t0):
    state = ReviewState(interval_seconds=-10, interval_started_at=t0)

    assert scheduler.remaining(state, t0 + 2_000) == 3


@pytest.mark.parametrize(
    "sequence",
    [[], [5, 5, 10], [25, 5], [0, 5], [-1, 5], [5, 2.5]],
)
def test_invalid_sequences_are_rejected(sequence):
    with pytest.raises(InvalidSequenceError):
        ReviewScheduler(sequence)


def test_single_step_ladder_saturates_immediately(t0):
    scheduler = ReviewScheduler([60])

    state = scheduler.advance(scheduler.new_state(), t0)

    assert state.interval_seconds == 60
    assert scheduler.remaining(state, t0 + 30_000) == 30
