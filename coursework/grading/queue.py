import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from coursework.core.errors import NotFound
from coursework.grading.lifecycle import INITIAL_STATUS, RevisionStatus
from coursework.grading.lookups import GradingLookup, SqlGradingLookup
from coursework.grading.penalty import (
    apply_penalty,
    as_utc,
    compute_penalty_percent,
    late_days_started,
)
from coursework.models.grade import Grade
from coursework.models.grading_queue import GradingQueueEntry
from coursework.models.revision import Revision
from coursework.models.task import Stage

logger = logging.getLogger(__name__)

# Columns owned by the projection; everything except the key and the version.
PROJECTED_FIELDS = (
    "stage_id",
    "task_id",
    "course_id",
    "album_number",
    "student_name",
    "last_revision_id",
    "last_revision_status",
    "last_submitted_at",
    "soft_deadline",
    "hard_deadline",
    "late_days_started",
    "penalty_percent_applied",
    "penalty_skipped",
    "last_points_brutto",
    "last_points_netto",
    "last_accepted_revision_id",
    "last_accepted_points_netto",
    "flag_new_submission",
)


@dataclass(frozen=True)
class EffectivePolicy:
    """Stage deadlines and penalty policy after applying a student's exemption."""

    soft_deadline: datetime | None
    hard_deadline: datetime | None
    allow_after_hard: bool
    k: float
    m: float

    @classmethod
    def resolve(cls, stage: Stage, exemption=None) -> "EffectivePolicy":
        soft = stage.soft_deadline
        hard = stage.hard_deadline
        allow_after_hard = False
        if exemption is not None:
            if exemption.custom_soft is not None:
                soft = exemption.custom_soft
            if exemption.custom_hard is not None:
                hard = exemption.custom_hard
            allow_after_hard = bool(exemption.allow_after_hard)
        return cls(
            soft_deadline=soft,
            hard_deadline=hard,
            allow_after_hard=allow_after_hard,
            k=stage.penalty_k_percent_per_24h or 0.0,
            m=stage.penalty_max_m_percent or 0.0,
        )

    def penalty_for(self, submitted_at: datetime) -> float:
        return compute_penalty_percent(
            self.soft_deadline,
            self.hard_deadline,
            submitted_at,
            self.allow_after_hard,
            self.k,
            self.m,
        )

    def late_days_for(self, submitted_at: datetime) -> int:
        return late_days_started(
            self.soft_deadline, self.hard_deadline, submitted_at, self.allow_after_hard
        )


class QueueSynchronizer:
    """
    Keeps the grading_queue read-model in step with submissions, grades and
    exemption changes.

    Never commits: the caller owns the transaction, so a failed lookup rolls
    back the triggering write together with the queue update. Every handler
    overwrites the fields it owns, which makes re-applying an event safe.
    """

    def __init__(self, db: Session, lookup: GradingLookup | None = None):
        self.db = db
        self.lookup = lookup or SqlGradingLookup(db)

    def get_entry(self, artifact_id: int, student_id: int) -> GradingQueueEntry | None:
        return self.db.get(GradingQueueEntry, (artifact_id, student_id))

    def resolve_policy(self, stage: Stage, student_id: int) -> EffectivePolicy:
        return EffectivePolicy.resolve(stage, self.lookup.find_exemption(stage.id, student_id))

    # -- events -----------------------------------------------------------

    def on_submission(self, revision: Revision) -> GradingQueueEntry:
        artifact = self.lookup.find_artifact(revision.artifact_id)
        stage = self.lookup.find_stage(artifact.stage_id)
        policy = self.resolve_policy(stage, revision.student_id)

        entry = self.get_entry(artifact.id, revision.student_id)
        if entry is None:
            entry = GradingQueueEntry(artifact_id=artifact.id, student_id=revision.student_id)
            self.db.add(entry)

        self._apply_identity(entry, stage, revision.student_id)
        self._apply_submission(entry, revision, policy, RevisionStatus(revision.status))
        self.db.flush()

        logger.info(
            "queue: revision %s submitted for artifact=%s student=%s penalty=%.1f%%",
            revision.id,
            artifact.id,
            revision.student_id,
            entry.penalty_percent_applied,
        )
        return entry

    def on_grade_assigned(
        self,
        revision: Revision,
        points: float,
        new_status: RevisionStatus,
        skip_penalty: bool = False,
    ) -> GradingQueueEntry:
        entry = self.get_entry(revision.artifact_id, revision.student_id)
        if entry is None:
            raise NotFound("Grading queue entry", (revision.artifact_id, revision.student_id))

        if entry.last_revision_id != revision.id:
            # the row tracks a newer submission; the old revision's grade stays in its history
            logger.warning(
                "queue: grade for revision %s ignored, row tracks revision %s",
                revision.id,
                entry.last_revision_id,
            )
            return entry

        self._apply_grade(entry, revision.id, points, new_status, skip_penalty)
        self.db.flush()

        logger.info(
            "queue: revision %s graded %s brutto=%s netto=%s",
            revision.id,
            new_status.value,
            entry.last_points_brutto,
            entry.last_points_netto,
        )
        return entry

    def recompute(self, stage_id: int, student_id: int) -> list[GradingQueueEntry]:
        """
        Re-derive deadlines and penalties of a student's rows under a stage,
        typically after an exemption changed. Status and brutto are left alone;
        rows that were never graded only get new deadline and penalty fields.
        """
        stage = self.lookup.find_stage(stage_id)
        policy = self.resolve_policy(stage, student_id)

        updated: list[GradingQueueEntry] = []
        for artifact in self.lookup.find_artifacts_by_stage(stage.id):
            entry = self.get_entry(artifact.id, student_id)
            if entry is None or entry.last_submitted_at is None:
                continue

            self._apply_penalty_fields(entry, policy, entry.last_submitted_at)
            if entry.last_points_brutto is not None:
                netto = apply_penalty(entry.last_points_brutto, self._percent(entry))
                entry.last_points_netto = netto
                if (
                    entry.last_accepted_revision_id == entry.last_revision_id
                    and entry.last_revision_status == RevisionStatus.ACCEPTED
                ):
                    entry.last_accepted_points_netto = netto
            updated.append(entry)

        self.db.flush()
        logger.info(
            "queue: recomputed %d row(s) for stage=%s student=%s",
            len(updated),
            stage_id,
            student_id,
        )
        return updated

    # -- full derivation --------------------------------------------------

    def derive(self, artifact_id: int, student_id: int) -> GradingQueueEntry | None:
        """
        Build the row for (artifact, student) from scratch by replaying its
        submissions and grades in commit order under the current policy.

        Returns a transient entry (not added to the session), or None when the
        student never submitted for the artifact.
        """
        artifact = self.lookup.find_artifact(artifact_id)
        stage = self.lookup.find_stage(artifact.stage_id)
        policy = self.resolve_policy(stage, student_id)

        revisions = list(
            self.db.scalars(
                select(Revision)
                .where(Revision.artifact_id == artifact_id, Revision.student_id == student_id)
                .order_by(Revision.created_at, Revision.id)
            )
        )
        if not revisions:
            return None

        grades = list(
            self.db.scalars(
                select(Grade)
                .where(Grade.revision_id.in_([r.id for r in revisions]))
                .order_by(Grade.created_at, Grade.id)
            )
        )

        # (timestamp, kind, id): a revision sorts before grades stamped at the same instant
        events = [(r.created_at, 0, r.id, r) for r in revisions]
        events += [(g.created_at, 1, g.id, g) for g in grades]
        events.sort(key=lambda e: (as_utc(e[0]), e[1], e[2]))

        entry = GradingQueueEntry(artifact_id=artifact_id, student_id=student_id)
        entry.penalty_skipped = False
        self._apply_identity(entry, stage, student_id)
        for _, kind, _, obj in events:
            if kind == 0:
                self._apply_submission(entry, obj, policy, INITIAL_STATUS)
            elif obj.revision_id == entry.last_revision_id:
                self._apply_grade(
                    entry,
                    obj.revision_id,
                    obj.points_brutto,
                    RevisionStatus(obj.status_after_grade),
                    bool(obj.penalty_skipped),
                )
        return entry

    def rebuild(self, artifact_id: int, student_id: int) -> GradingQueueEntry | None:
        derived = self.derive(artifact_id, student_id)
        if derived is None:
            return self.get_entry(artifact_id, student_id)

        entry = self.get_entry(artifact_id, student_id)
        if entry is None:
            entry = GradingQueueEntry(artifact_id=artifact_id, student_id=student_id)
            self.db.add(entry)
        for field in PROJECTED_FIELDS:
            setattr(entry, field, getattr(derived, field))
        self.db.flush()

        logger.info("queue: rebuilt row artifact=%s student=%s", artifact_id, student_id)
        return entry

    # -- field writers ----------------------------------------------------

    def _apply_identity(self, entry: GradingQueueEntry, stage: Stage, student_id: int) -> None:
        task = self.lookup.find_task(stage.task_id)
        entry.stage_id = stage.id
        entry.task_id = task.id
        entry.course_id = task.course_id
        entry.album_number = self.lookup.find_enrollment_album_number(task.course_id, student_id)
        entry.student_name = self.lookup.find_user_display_name(student_id)

    @staticmethod
    def _apply_penalty_fields(
        entry: GradingQueueEntry, policy: EffectivePolicy, submitted_at: datetime
    ) -> None:
        entry.soft_deadline = policy.soft_deadline
        entry.hard_deadline = policy.hard_deadline
        entry.penalty_percent_applied = policy.penalty_for(submitted_at)
        entry.late_days_started = policy.late_days_for(submitted_at)

    def _apply_submission(
        self,
        entry: GradingQueueEntry,
        revision: Revision,
        policy: EffectivePolicy,
        status: RevisionStatus,
    ) -> None:
        entry.last_revision_id = revision.id
        entry.last_revision_status = status
        entry.last_submitted_at = revision.created_at
        entry.penalty_skipped = False
        self._apply_penalty_fields(entry, policy, revision.created_at)
        entry.flag_new_submission = True

    def _apply_grade(
        self,
        entry: GradingQueueEntry,
        revision_id: int,
        points: float,
        new_status: RevisionStatus,
        skip_penalty: bool,
    ) -> None:
        entry.penalty_skipped = skip_penalty
        netto = apply_penalty(points, self._percent(entry))
        entry.last_points_brutto = points
        entry.last_points_netto = netto
        entry.last_revision_status = new_status
        entry.flag_new_submission = False
        if new_status == RevisionStatus.ACCEPTED:
            entry.last_accepted_revision_id = revision_id
            entry.last_accepted_points_netto = netto

    @staticmethod
    def _percent(entry: GradingQueueEntry) -> float:
        if entry.penalty_skipped:
            return 0.0
        return entry.penalty_percent_applied or 0.0
