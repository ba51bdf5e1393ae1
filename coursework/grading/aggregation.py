import logging
from typing import NamedTuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from coursework.grading.lookups import GradingLookup, SqlGradingLookup
from coursework.grading.queue import QueueSynchronizer
from coursework.models.grading_queue import GradingQueueEntry

logger = logging.getLogger(__name__)


class AggregationResult(NamedTuple):
    points: float
    weight_total: int


class Aggregator:
    """
    Weighted roll-up of a student's stage scores into a task total.

    A stage scores the best `last_accepted_points_netto` among its artifacts,
    where each artifact contributes its most recently accepted revision, not
    its best-scoring one: a later acceptance always supersedes an earlier one.
    """

    def __init__(self, db: Session, lookup: GradingLookup | None = None):
        self.db = db
        self.lookup = lookup or SqlGradingLookup(db)

    def aggregate_task(self, task_id: int, student_id: int) -> AggregationResult:
        """Aggregate from the grading queue read-model."""
        return self._aggregate(task_id, student_id, self._accepted_from_queue)

    def aggregate_task_from_revisions(self, task_id: int, student_id: int) -> AggregationResult:
        """Same total, derived by replaying revisions and grades instead of reading the queue."""
        sync = QueueSynchronizer(self.db, self.lookup)

        def accepted(artifact_ids: list[int], student: int) -> list[float | None]:
            values = []
            for artifact_id in artifact_ids:
                derived = sync.derive(artifact_id, student)
                values.append(derived.last_accepted_points_netto if derived else None)
            return values

        return self._aggregate(task_id, student_id, accepted)

    def _accepted_from_queue(self, artifact_ids: list[int], student_id: int) -> list[float | None]:
        if not artifact_ids:
            return []
        rows = self.db.scalars(
            select(GradingQueueEntry).where(
                GradingQueueEntry.artifact_id.in_(artifact_ids),
                GradingQueueEntry.student_id == student_id,
            )
        )
        return [row.last_accepted_points_netto for row in rows]

    def _aggregate(self, task_id: int, student_id: int, accepted_values) -> AggregationResult:
        task = self.lookup.find_task(task_id)

        weighted = 0.0
        weight_total = 0
        for stage in self.lookup.find_stages_by_task(task.id):
            artifact_ids = [a.id for a in self.lookup.find_artifacts_by_stage(stage.id)]
            best = 0.0
            for value in accepted_values(artifact_ids, student_id):
                if value is not None:
                    best = max(best, value)
            weighted += best * stage.weight_percent / 100.0
            weight_total += stage.weight_percent

        logger.debug(
            "aggregate task=%s student=%s -> %.2f (weights %d)",
            task_id,
            student_id,
            weighted,
            weight_total,
        )
        return AggregationResult(points=weighted, weight_total=weight_total)
