import math
from datetime import datetime, timezone

from coursework.core.config import MINUTES_PER_LATE_DAY


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _effective_submission(
    hard_deadline: datetime | None,
    submitted_at: datetime,
    allow_after_hard: bool,
) -> datetime:
    if hard_deadline is not None and allow_after_hard:
        hard = as_utc(hard_deadline)
        if submitted_at > hard:
            return hard
    return submitted_at


def late_days_started(
    soft_deadline: datetime | None,
    hard_deadline: datetime | None,
    submitted_at: datetime,
    allow_after_hard: bool = False,
) -> int:
    """
    Number of started 24h periods between the soft deadline and the submission.

    Any fraction of a day counts as a full day. With an after-hard allowance
    the submission time is clamped to the hard deadline first.
    """
    if soft_deadline is None:
        return 0

    soft = as_utc(soft_deadline)
    submitted = as_utc(submitted_at)
    if submitted <= soft:
        return 0

    submitted = _effective_submission(hard_deadline, submitted, allow_after_hard)
    late_minutes = int((submitted - soft).total_seconds() // 60)
    return math.ceil(late_minutes / MINUTES_PER_LATE_DAY)


def compute_penalty_percent(
    soft_deadline: datetime | None,
    hard_deadline: datetime | None,
    submitted_at: datetime,
    allow_after_hard: bool,
    k: float | None,
    m: float | None,
) -> float:
    """
    Returns the late penalty in percent, within [0, 100].

    Policy:
    - no soft deadline, or submitted on/before it -> 0
    - past the hard deadline without an allowance -> 100 (worthless)
    - past the hard deadline with an allowance -> lateness capped at the hard deadline
    - otherwise k percent per started 24h, capped at m
    """
    if soft_deadline is None:
        return 0.0

    submitted = as_utc(submitted_at)
    if submitted <= as_utc(soft_deadline):
        return 0.0

    if hard_deadline is not None and submitted > as_utc(hard_deadline) and not allow_after_hard:
        return 100.0

    days = late_days_started(soft_deadline, hard_deadline, submitted, allow_after_hard)
    penalty = days * (k or 0.0)
    return float(min(penalty, m or 0.0))


def apply_penalty(brutto: float, percent: float) -> float:
    """Net points after deducting `percent` from `brutto`. NaN input scores 0."""
    if brutto is None or math.isnan(brutto):
        return 0.0
    factor = max(0.0, 1.0 - percent / 100.0)
    return brutto * factor
