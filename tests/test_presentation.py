import pytest

from hafiza.models import ReviewState, UsageCounts
from hafiza.presentation import READY_LABEL, due_label, ladder_progress, total_requests, usage_percent
from hafiza.scheduler import ReviewScheduler


@pytest.mark.parametrize(
    ("remaining", "label"),
    [(0, READY_LABEL), (-3, READY_LABEL), (1, "Review in 1m"), (60, "Review in 1m"), (61, "Review in 2m"), (18000, "Review in 300m")],
)
def test_due_label_rounds_up_to_minutes(remaining, label):
    assert due_label(remaining) == label


def test_ladder_progress_lights_steps_up_to_current():
    scheduler = ReviewScheduler()

    assert ladder_progress(scheduler, ReviewState(interval_seconds=5)) == [True, False, False, False, False]
    assert ladder_progress(scheduler, ReviewState(interval_seconds=3600)) == [True, True, True, True, False]
    assert ladder_progress(scheduler, ReviewState(interval_seconds=42)) == [True, False, False, False, False]


def test_usage_percent_tracks_text_requests_and_caps():
    assert usage_percent(UsageCounts(text_count=150, image_count=900)) == pytest.approx(10.0)
    assert usage_percent(UsageCounts(text_count=3000)) == 100.0
    assert usage_percent(UsageCounts(text_count=1), daily_limit=4) == pytest.approx(25.0)
    assert usage_percent(UsageCounts(), daily_limit=0) == 100.0


def test_total_requests_sums_both_kinds():
    assert total_requests(UsageCounts(text_count=2, image_count=3)) == 5
