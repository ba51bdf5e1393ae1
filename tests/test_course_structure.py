from datetime import datetime, timedelta, timezone

import pytest

from conftest import as_teacher
from coursework.core.errors import NotFound, ValidationError
from coursework.grading.lifecycle import RevisionStatus
from coursework.grading.queue import QueueSynchronizer
from coursework.models.task import Artifact, GradingMode
from coursework.schemas.revision import FileRef
from coursework.schemas.task import StageCreate, StageUpdate, TaskCreate
from coursework.services.course_structure import create_task, task_weight_status, update_stage
from coursework.services.grades import grade_revision
from coursework.services.revisions import submit_revision

NOW = datetime.now(timezone.utc)


def _stage(name, weight, **kwargs):
    defaults = dict(
        soft_deadline=NOW + timedelta(days=7),
        hard_deadline=NOW + timedelta(days=10),
        penalty_k_percent_per_24h=5,
        penalty_max_m_percent=25,
    )
    defaults.update(kwargs)
    return StageCreate(name=name, weight_percent=weight, **defaults)


def test_create_task_with_stages(seed, db):
    payload = TaskCreate(title="Essay", stages=[_stage("Draft", 30), _stage("Final", 70)])
    task = create_task(db, seed.course_id, payload, seed.teacher_id)

    assert [s.name for s in task.stages] == ["Draft", "Final"]
    assert task.grading_mode == GradingMode.PERCENT
    assert task.max_points == 10

    status = task_weight_status(db, task.id)
    assert (status.current_total, status.remaining, status.stage_count) == (100, 0, 2)


def test_create_task_rejects_bad_weight_sum(seed, db):
    payload = TaskCreate(title="Essay", stages=[_stage("Draft", 30), _stage("Final", 60)])
    with pytest.raises(ValidationError):
        create_task(db, seed.course_id, payload, seed.teacher_id)


def test_create_task_rejects_soft_in_past(seed, db):
    payload = TaskCreate(title="Essay", stages=[_stage("Only", 100, soft_deadline=NOW - timedelta(days=1))])
    with pytest.raises(ValidationError):
        create_task(db, seed.course_id, payload, seed.teacher_id)


def test_create_task_rejects_k_above_m(seed, db):
    payload = TaskCreate(
        title="Essay",
        stages=[_stage("Only", 100, penalty_k_percent_per_24h=40, penalty_max_m_percent=20)],
    )
    with pytest.raises(ValidationError):
        create_task(db, seed.course_id, payload, seed.teacher_id)


def test_create_task_unknown_course(seed, db):
    payload = TaskCreate(title="Essay", stages=[_stage("Only", 100)])
    with pytest.raises(NotFound):
        create_task(db, 999_999, payload, seed.teacher_id)


def test_update_stage_rechecks_weight_sum(seed, db):
    stage = QueueSynchronizer(db).lookup.find_stage(seed.stage1_id)
    payload = StageUpdate(
        name=stage.name,
        weight_percent=70,
        soft_deadline=stage.soft_deadline,
        hard_deadline=stage.hard_deadline,
        penalty_k_percent_per_24h=stage.penalty_k_percent_per_24h,
        penalty_max_m_percent=stage.penalty_max_m_percent,
    )
    with pytest.raises(ValidationError):
        update_stage(db, seed.stage1_id, payload, seed.teacher_id)


def test_update_stage_policy_change_recomputes_rows(seed, db):
    submitted = datetime.now(timezone.utc)
    revision = submit_revision(
        db, seed.artifact_a, seed.student_id, FileRef(file_key="k", original_file_name="a.pdf"), submitted_at=submitted
    )
    grade_revision(db, revision.id, seed.teacher_id, 80, None, RevisionStatus.ACCEPTED)

    payload = StageUpdate(
        name="Design",
        weight_percent=60,
        soft_deadline=submitted - timedelta(hours=25),
        hard_deadline=submitted + timedelta(days=1),
        penalty_k_percent_per_24h=5,
        penalty_max_m_percent=50,
    )
    # edited before the new soft deadline passed
    update_stage(db, seed.stage1_id, payload, seed.teacher_id, now=submitted - timedelta(days=2))

    entry = QueueSynchronizer(db).get_entry(seed.artifact_a, seed.student_id)
    assert entry.penalty_percent_applied == 10
    assert entry.last_points_netto == pytest.approx(72)
    assert entry.last_accepted_points_netto == pytest.approx(72)


def test_create_task_over_http(client, seed):
    soft = (datetime.now(timezone.utc) + timedelta(days=3)).isoformat()
    r = client.post(
        f"/courses/{seed.course_id}/tasks",
        headers=as_teacher(seed.teacher_id),
        json={
            "title": "Lab 1",
            "grading_mode": "POINTS10",
            "stages": [
                {"name": "Report", "weight_percent": 100, "soft_deadline": soft,
                 "penalty_k_percent_per_24h": 10, "penalty_max_m_percent": 50},
            ],
        },
    )
    assert r.status_code == 201, r.text
    task = r.json()
    assert task["grading_mode"] == "POINTS10"
    assert task["stages"][0]["weight_percent"] == 100

    r = client.get(f"/tasks/{task['id']}/weights", headers=as_teacher(seed.teacher_id))
    assert r.json() == {"current_total": 100, "remaining": 0, "stage_count": 1}


def test_create_task_over_http_bad_weights_is_400(client, seed):
    soft = (datetime.now(timezone.utc) + timedelta(days=3)).isoformat()
    r = client.post(
        f"/courses/{seed.course_id}/tasks",
        headers=as_teacher(seed.teacher_id),
        json={"title": "Lab 2", "stages": [{"name": "Report", "weight_percent": 80, "soft_deadline": soft}]},
    )
    assert r.status_code == 400


def test_points10_task_caps_points_at_max(seed, db):
    payload = TaskCreate(
        title="Quiz", grading_mode=GradingMode.POINTS10, max_points=10, stages=[_stage("Only", 100)]
    )
    task = create_task(db, seed.course_id, payload, seed.teacher_id)
    artifact_stage = task.stages[0]

    artifact = Artifact(stage_id=artifact_stage.id, name="Answers")
    db.add(artifact)
    db.commit()

    revision = submit_revision(db, artifact.id, seed.student_id, FileRef(file_key="k", original_file_name="q.txt"))
    with pytest.raises(ValidationError):
        grade_revision(db, revision.id, seed.teacher_id, 11, None, RevisionStatus.ACCEPTED)
    grade = grade_revision(db, revision.id, seed.teacher_id, 9.5, None, RevisionStatus.ACCEPTED)
    assert grade.points_netto == 9.5


def test_create_task_rejects_k_without_maximum(seed, db):
    payload = TaskCreate(
        title="Essay",
        stages=[_stage("Only", 100, penalty_k_percent_per_24h=5, penalty_max_m_percent=None)],
    )
    with pytest.raises(ValidationError):
        create_task(db, seed.course_id, payload, seed.teacher_id)
