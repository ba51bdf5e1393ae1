from datetime import datetime, timedelta, timezone

import pytest

from coursework.core.errors import ValidationError
from coursework.grading.validation import (
    validate_deadlines,
    validate_penalty_params,
    validate_weights,
    weight_status,
)

NOW = datetime(2025, 5, 1, 12, 0, tzinfo=timezone.utc)


def test_deadlines_ok():
    validate_deadlines(NOW + timedelta(days=1), NOW + timedelta(days=2), NOW)
    validate_deadlines(NOW + timedelta(days=1), NOW + timedelta(days=1), NOW)
    validate_deadlines(None, None, NOW)


def test_soft_in_the_past_rejected():
    with pytest.raises(ValidationError):
        validate_deadlines(NOW - timedelta(minutes=1), None, NOW)


def test_soft_in_the_past_allowed_when_unchanged():
    validate_deadlines(NOW - timedelta(days=1), NOW, NOW, allow_past_soft=True)


def test_soft_after_hard_rejected():
    with pytest.raises(ValidationError):
        validate_deadlines(NOW + timedelta(days=3), NOW + timedelta(days=2), NOW)


@pytest.mark.parametrize("k,m", [(-1, 10), (10, 101), (30, 20)])
def test_bad_penalty_params(k, m):
    with pytest.raises(ValidationError):
        validate_penalty_params(k, m)


def test_penalty_params_ok():
    validate_penalty_params(5, 50)
    validate_penalty_params(0, 0)
    validate_penalty_params(None, None)
    validate_penalty_params(0, None)


def test_penalty_k_without_maximum_rejected():
    with pytest.raises(ValidationError):
        validate_penalty_params(5, None)


def test_weights_must_sum_to_100():
    validate_weights([60, 40])
    with pytest.raises(ValidationError):
        validate_weights([60, 30])
    with pytest.raises(ValidationError):
        validate_weights([60, 50])


def test_weight_status():
    status = weight_status([30, 20])
    assert (status.current_total, status.remaining, status.stage_count) == (50, 50, 2)
