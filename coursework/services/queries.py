from datetime import datetime, timezone
from typing import Literal

from sqlalchemy import select
from sqlalchemy.orm import Session

from coursework.grading.aggregation import AggregationResult, Aggregator
from coursework.grading.lifecycle import RevisionStatus
from coursework.grading.lookups import SqlGradingLookup
from coursework.grading.penalty import as_utc
from coursework.grading.queue import QueueSynchronizer
from coursework.models.grading_queue import GradingQueueEntry

DeadlineFilter = Literal["upcoming", "overdue", "critical"]
SortKey = Literal["deadline", "status", "student", "penalty"]

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def get_queue_entry(db: Session, artifact_id: int, student_id: int) -> GradingQueueEntry | None:
    return QueueSynchronizer(db).get_entry(artifact_id, student_id)


def aggregate_task(
    db: Session, task_id: int, student_id: int, from_revisions: bool = False
) -> AggregationResult:
    aggregator = Aggregator(db)
    if from_revisions:
        return aggregator.aggregate_task_from_revisions(task_id, student_id)
    return aggregator.aggregate_task(task_id, student_id)


def _matches_deadline(entry: GradingQueueEntry, deadline_filter: DeadlineFilter, now: datetime) -> bool:
    if deadline_filter == "upcoming":
        return entry.soft_deadline is not None and as_utc(entry.soft_deadline) > now
    if deadline_filter == "overdue":
        return entry.soft_deadline is not None and as_utc(entry.soft_deadline) < now
    # critical: past the hard deadline
    return entry.hard_deadline is not None and as_utc(entry.hard_deadline) < now


def _sort_entries(entries: list[GradingQueueEntry], sort_by: SortKey) -> list[GradingQueueEntry]:
    if sort_by == "status":
        return sorted(entries, key=lambda e: e.last_revision_status.value if e.last_revision_status else "")
    if sort_by == "student":
        return sorted(entries, key=lambda e: e.student_name or "")
    if sort_by == "penalty":
        return sorted(entries, key=lambda e: e.penalty_percent_applied or 0.0, reverse=True)
    return sorted(entries, key=lambda e: as_utc(e.soft_deadline) if e.soft_deadline else _FAR_FUTURE)


def list_stage_queue(
    db: Session,
    stage_id: int,
    status: RevisionStatus | None = None,
    deadline_filter: DeadlineFilter | None = None,
    album_prefix: str | None = None,
    sort_by: SortKey = "deadline",
    now: datetime | None = None,
) -> list[GradingQueueEntry]:
    """
    Dashboard listing of a stage's queue rows.

    - status: keep rows whose last revision has this status (None = all)
    - deadline_filter: upcoming (before soft), overdue (after soft), critical (after hard)
    - album_prefix: keep rows whose album number starts with it (group filter)
    - sort_by: deadline (soonest first), status, student, penalty (highest first)
    """
    SqlGradingLookup(db).find_stage(stage_id)
    now = as_utc(now or datetime.now(timezone.utc))

    query = select(GradingQueueEntry).where(GradingQueueEntry.stage_id == stage_id)
    if status is not None:
        query = query.where(GradingQueueEntry.last_revision_status == status)
    entries = list(db.scalars(query))

    if deadline_filter is not None:
        entries = [e for e in entries if _matches_deadline(e, deadline_filter, now)]
    if album_prefix:
        entries = [e for e in entries if e.album_number and e.album_number.startswith(album_prefix)]

    return _sort_entries(entries, sort_by)
