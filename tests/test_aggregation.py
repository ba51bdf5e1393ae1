from datetime import datetime, timedelta, timezone

import pytest

from conftest import set_stage_policy
from coursework.core.errors import NotFound
from coursework.grading.aggregation import Aggregator
from coursework.grading.lifecycle import RevisionStatus
from coursework.schemas.revision import FileRef
from coursework.services.grades import grade_revision
from coursework.services.queries import aggregate_task
from coursework.services.revisions import submit_revision

FILE = FileRef(file_key="uploads/work.zip", original_file_name="work.zip")


def _accept(db, seed, artifact_id, points, student_id=None):
    revision = submit_revision(db, artifact_id, student_id or seed.student_id, FILE)
    grade_revision(db, revision.id, seed.teacher_id, points, None, RevisionStatus.ACCEPTED)
    return revision


def test_nothing_accepted_scores_zero(seed, db):
    result = aggregate_task(db, seed.task_id, seed.student_id)
    assert result.points == 0
    assert result.weight_total == 100


def test_single_accepted_stage(seed, db):
    _accept(db, seed, seed.artifact_a, 80)

    result = aggregate_task(db, seed.task_id, seed.student_id)
    assert result.points == pytest.approx(48.0)
    assert result.weight_total == 100


def test_stage_takes_best_artifact(seed, db):
    _accept(db, seed, seed.artifact_a, 50)
    _accept(db, seed, seed.artifact_b, 80)
    _accept(db, seed, seed.artifact_c, 90)

    result = aggregate_task(db, seed.task_id, seed.student_id)
    assert result.points == pytest.approx(80 * 0.6 + 90 * 0.4)


def test_unaccepted_grades_do_not_count(seed, db):
    revision = submit_revision(db, seed.artifact_a, seed.student_id, FILE)
    grade_revision(db, revision.id, seed.teacher_id, 95, None, RevisionStatus.NEEDS_FIX)

    assert aggregate_task(db, seed.task_id, seed.student_id).points == 0


def test_most_recent_acceptance_wins(seed, db):
    first = _accept(db, seed, seed.artifact_a, 90)
    assert aggregate_task(db, seed.task_id, seed.student_id).points == pytest.approx(54.0)

    grade_revision(db, first.id, seed.teacher_id, 90, "please fix", RevisionStatus.NEEDS_FIX)
    second = submit_revision(db, seed.artifact_a, seed.student_id, FILE)
    # previous acceptance still stands until the new revision is graded
    assert aggregate_task(db, seed.task_id, seed.student_id).points == pytest.approx(54.0)

    grade_revision(db, second.id, seed.teacher_id, 70, None, RevisionStatus.ACCEPTED)
    assert aggregate_task(db, seed.task_id, seed.student_id).points == pytest.approx(42.0)


def test_penalty_flows_into_total(seed, db):
    now = datetime.now(timezone.utc)
    set_stage_policy(db, seed.stage1_id, soft=now - timedelta(hours=25), hard=now + timedelta(days=1))
    revision = submit_revision(db, seed.artifact_a, seed.student_id, FILE, submitted_at=now)
    grade_revision(db, revision.id, seed.teacher_id, 80, None, RevisionStatus.ACCEPTED)

    assert aggregate_task(db, seed.task_id, seed.student_id).points == pytest.approx(72 * 0.6)


def test_students_are_aggregated_separately(seed, db):
    _accept(db, seed, seed.artifact_a, 80)
    _accept(db, seed, seed.artifact_c, 50, student_id=seed.student2_id)

    assert aggregate_task(db, seed.task_id, seed.student_id).points == pytest.approx(48.0)
    assert aggregate_task(db, seed.task_id, seed.student2_id).points == pytest.approx(20.0)


def test_replay_matches_queue(seed, db):
    first = _accept(db, seed, seed.artifact_a, 90)
    grade_revision(db, first.id, seed.teacher_id, 90, None, RevisionStatus.NEEDS_FIX)
    second = submit_revision(db, seed.artifact_a, seed.student_id, FILE)
    grade_revision(db, second.id, seed.teacher_id, 65, None, RevisionStatus.ACCEPTED)
    _accept(db, seed, seed.artifact_b, 30)
    _accept(db, seed, seed.artifact_c, 77)

    aggregator = Aggregator(db)
    from_queue = aggregator.aggregate_task(seed.task_id, seed.student_id)
    from_revisions = aggregator.aggregate_task_from_revisions(seed.task_id, seed.student_id)

    assert from_revisions.points == pytest.approx(from_queue.points)
    assert from_revisions.weight_total == from_queue.weight_total
    assert from_queue.points == pytest.approx(65 * 0.6 + 77 * 0.4)


def test_unknown_task_raises(seed, db):
    with pytest.raises(NotFound):
        aggregate_task(db, 999_999, seed.student_id)
    with pytest.raises(NotFound):
        aggregate_task(db, 999_999, seed.student_id, from_revisions=True)
