from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable

from coursework.core.config import TOTAL_WEIGHT_PERCENT
from coursework.core.errors import ValidationError
from coursework.grading.penalty import as_utc


@dataclass(frozen=True)
class WeightStatus:
    current_total: int
    remaining: int
    stage_count: int


def validate_deadlines(
    soft_deadline: datetime | None,
    hard_deadline: datetime | None,
    now: datetime | None = None,
    allow_past_soft: bool = False,
) -> None:
    """Soft deadline may not lie in the past and may not be after the hard one."""
    now = now or datetime.now(timezone.utc)
    if not allow_past_soft and soft_deadline is not None and as_utc(soft_deadline) < as_utc(now):
        raise ValidationError("Soft deadline cannot be in the past")
    if soft_deadline is not None and hard_deadline is not None:
        if as_utc(soft_deadline) > as_utc(hard_deadline):
            raise ValidationError("Soft deadline must be on or before the hard deadline")


def validate_penalty_params(k: float | None, m: float | None) -> None:
    if k is not None and not 0 <= k <= 100:
        raise ValidationError("Penalty k must be between 0 and 100 percent")
    if m is not None and not 0 <= m <= 100:
        raise ValidationError("Maximum penalty m must be between 0 and 100 percent")
    if k is not None and m is not None and k > m:
        raise ValidationError("Penalty k cannot exceed maximum penalty m")
    if k and m is None:
        raise ValidationError("Maximum penalty m is required when penalty k is set")


def validate_weights(weights: Iterable[int]) -> None:
    weights = list(weights)
    if any(w < 0 or w > TOTAL_WEIGHT_PERCENT for w in weights):
        raise ValidationError(f"Stage weight must be between 0 and {TOTAL_WEIGHT_PERCENT}")
    total = sum(weights)
    if total != TOTAL_WEIGHT_PERCENT:
        raise ValidationError(
            f"Stage weights must sum to {TOTAL_WEIGHT_PERCENT}%, currently {total}%"
        )


def weight_status(weights: Iterable[int]) -> WeightStatus:
    weights = list(weights)
    total = sum(weights)
    return WeightStatus(
        current_total=total,
        remaining=TOTAL_WEIGHT_PERCENT - total,
        stage_count=len(weights),
    )
