import math
from datetime import datetime, timedelta, timezone

import pytest

from coursework.grading.penalty import apply_penalty, compute_penalty_percent, late_days_started

SOFT = datetime(2024, 1, 1, tzinfo=timezone.utc)
HARD = SOFT + timedelta(days=2)


def test_no_penalty_without_soft_deadline():
    assert compute_penalty_percent(None, HARD, SOFT + timedelta(days=30), False, 10, 50) == 0


@pytest.mark.parametrize("before", [timedelta(0), timedelta(minutes=1), timedelta(days=3)])
def test_no_penalty_on_or_before_soft(before):
    assert compute_penalty_percent(SOFT, HARD, SOFT - before, False, 10, 50) == 0


def test_started_day_counts_as_full_day():
    # soft + 25h -> two started days
    submitted = SOFT + timedelta(hours=25)
    assert late_days_started(SOFT, HARD, submitted) == 2
    assert compute_penalty_percent(SOFT, HARD, submitted, False, 5, 50) == 10
    assert apply_penalty(80, 10) == pytest.approx(72)


def test_one_minute_late_is_one_day():
    submitted = SOFT + timedelta(minutes=1)
    assert compute_penalty_percent(SOFT, None, submitted, False, 7, 50) == 7


def test_penalty_capped_at_max():
    submitted = SOFT + timedelta(days=10)
    assert compute_penalty_percent(SOFT, None, submitted, False, 15, 20) == 20


def test_after_hard_without_allowance_is_worthless():
    submitted = HARD + timedelta(hours=1)
    assert compute_penalty_percent(SOFT, HARD, submitted, False, 10, 50) == 100


def test_after_hard_with_allowance_is_capped_at_hard_value():
    at_hard = compute_penalty_percent(SOFT, HARD, HARD, True, 10, 50)
    much_later = compute_penalty_percent(SOFT, HARD, HARD + timedelta(days=20), True, 10, 50)
    assert at_hard == 20
    assert much_later == at_hard
    assert late_days_started(SOFT, HARD, HARD + timedelta(days=20), True) == 2


def test_penalty_is_monotonic_in_lateness():
    previous = 0.0
    for minutes in range(0, 3 * 24 * 60, 97):
        current = compute_penalty_percent(SOFT, None, SOFT + timedelta(minutes=minutes), False, 4, 100)
        assert current >= previous
        assert current == min(math.ceil(minutes / 1440) * 4, 100)
        previous = current


def test_naive_datetimes_are_treated_as_utc():
    naive_soft = datetime(2024, 1, 1)
    submitted = SOFT + timedelta(hours=25)
    assert compute_penalty_percent(naive_soft, None, submitted, False, 5, 50) == 10


def test_missing_policy_values_mean_no_penalty():
    assert compute_penalty_percent(SOFT, None, SOFT + timedelta(days=1), False, None, None) == 0


def test_apply_penalty_bounds():
    assert apply_penalty(80.0, 0) == 80.0
    assert apply_penalty(80.0, 100) == 0
    assert apply_penalty(80.0, 25.0) == 60.0
    assert apply_penalty(80.0, 150) == 0


def test_apply_penalty_decreases_with_percent():
    values = [apply_penalty(50.0, p) for p in range(0, 101, 10)]
    assert values == sorted(values, reverse=True)


def test_apply_penalty_nan_scores_zero():
    assert apply_penalty(float("nan"), 10) == 0.0
