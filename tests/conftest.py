import os
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

TEST_DB_FILE = "test_coursework.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

# app startup (init_db) must not touch the real database
os.environ["DATABASE_URL"] = TEST_DB_URL

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from coursework.core.deps import get_audit_sink, get_db  # noqa: E402
from coursework.db.base import Base  # noqa: E402
from coursework.main import app  # noqa: E402
from coursework.models.course import Course, CourseStudent  # noqa: E402
from coursework.models.task import Artifact, Stage, Task  # noqa: E402
from coursework.models.user import User  # noqa: E402

engine = create_engine(
    TEST_DB_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class MemoryAuditSink:
    def __init__(self):
        self.events = []

    def record(self, event_type, actor_id, context):
        self.events.append((event_type, actor_id, context))


def as_student(student_id: int) -> dict:
    return {"X-User-Id": str(student_id), "X-User-Role": "student"}


def as_teacher(teacher_id: int) -> dict:
    return {"X-User-Id": str(teacher_id), "X-User-Role": "teacher"}


def set_stage_policy(db, stage_id, soft, hard, k=None, m=None):
    """Move a stage's deadlines directly, bypassing the not-in-the-past check."""
    stage = db.get(Stage, stage_id)
    stage.soft_deadline = soft
    stage.hard_deadline = hard
    if k is not None:
        stage.penalty_k_percent_per_24h = k
    if m is not None:
        stage.penalty_max_m_percent = m
    db.commit()


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


@pytest.fixture(autouse=True)
def seed():
    """
    Seed a clean minimal dataset for each test:
    one course, two students, one teacher and a task with two stages
    (60% with artifacts A and B, 40% with artifact C), deadlines in the future.
    """
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()

        student = User(email="student1@example.com", first_name="Student", last_name="One", role="student")
        student2 = User(email="student2@example.com", first_name="Anna", last_name="Two", role="student")
        teacher = User(email="teacher1@example.com", first_name="Teacher", last_name="One", role="teacher")
        db.add_all([student, student2, teacher])
        db.commit()

        course = Course(title="Software Engineering", teacher_id=teacher.id)
        db.add(course)
        db.commit()

        db.add_all(
            [
                CourseStudent(course_id=course.id, student_id=student.id, album_number="s1001"),
                CourseStudent(course_id=course.id, student_id=student2.id, album_number="k2002"),
            ]
        )

        now = datetime.now(timezone.utc)
        task = Task(course_id=course.id, title="Term project")
        stage1 = Stage(
            name="Design",
            weight_percent=60,
            soft_deadline=now + timedelta(days=7),
            hard_deadline=now + timedelta(days=9),
            penalty_k_percent_per_24h=5.0,
            penalty_max_m_percent=50.0,
        )
        stage2 = Stage(
            name="Implementation",
            weight_percent=40,
            soft_deadline=now + timedelta(days=14),
            hard_deadline=None,
            penalty_k_percent_per_24h=10.0,
            penalty_max_m_percent=30.0,
        )
        stage1.artifacts = [Artifact(name="Design doc"), Artifact(name="Diagrams")]
        stage2.artifacts = [Artifact(name="Source code")]
        task.stages = [stage1, stage2]
        db.add(task)
        db.commit()

        yield SimpleNamespace(
            student_id=student.id,
            student2_id=student2.id,
            teacher_id=teacher.id,
            course_id=course.id,
            task_id=task.id,
            stage1_id=stage1.id,
            stage2_id=stage2.id,
            artifact_a=stage1.artifacts[0].id,
            artifact_b=stage1.artifacts[1].id,
            artifact_c=stage2.artifacts[0].id,
        )
    finally:
        db.close()


@pytest.fixture()
def db():
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def audit():
    return MemoryAuditSink()


@pytest.fixture()
def client(audit):
    """Test client that uses the test DB session via dependency override."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_audit_sink] = lambda: audit
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
