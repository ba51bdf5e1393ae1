import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from coursework.core.errors import ValidationError
from coursework.grading.audit import AuditEventType, AuditSink
from coursework.grading.lifecycle import INITIAL_STATUS
from coursework.grading.lookups import SqlGradingLookup
from coursework.grading.queue import QueueSynchronizer
from coursework.models.revision import Revision
from coursework.models.task import Artifact
from coursework.schemas.revision import FileRef
from coursework.services.transaction import transaction

logger = logging.getLogger(__name__)


def _check_file_constraints(artifact: Artifact, file_ref: FileRef) -> None:
    if artifact.max_size_bytes is not None and file_ref.size_bytes is not None:
        if file_ref.size_bytes > artifact.max_size_bytes:
            raise ValidationError(
                f"File exceeds the {artifact.max_size_bytes} byte limit of artifact {artifact.id}"
            )

    if artifact.allowed_extensions_csv:
        allowed = {
            ext.strip().lower().lstrip(".")
            for ext in artifact.allowed_extensions_csv.split(",")
            if ext.strip()
        }
        name = file_ref.original_file_name.lower()
        ext = name.rsplit(".", 1)[1] if "." in name else ""
        if allowed and ext not in allowed:
            raise ValidationError(
                f"File type .{ext} not allowed, expected one of: {', '.join(sorted(allowed))}"
            )


def submit_revision(
    db: Session,
    artifact_id: int,
    student_id: int,
    file_ref: FileRef,
    submitted_at: datetime | None = None,
    audit: AuditSink | None = None,
) -> Revision:
    """Create a SUBMITTED revision and project it into the grading queue."""
    submitted_at = submitted_at or datetime.now(timezone.utc)

    with transaction(db):
        lookup = SqlGradingLookup(db)
        artifact = lookup.find_artifact(artifact_id)
        _check_file_constraints(artifact, file_ref)

        revision = Revision(
            artifact_id=artifact.id,
            student_id=student_id,
            created_at=submitted_at,
            file_key=file_ref.file_key,
            original_file_name=file_ref.original_file_name,
            mime_type=file_ref.mime_type,
            size_bytes=file_ref.size_bytes,
            comment=file_ref.comment or None,
            status=INITIAL_STATUS,
        )
        db.add(revision)
        db.flush()

        QueueSynchronizer(db, lookup).on_submission(revision)

    db.refresh(revision)
    logger.info(
        "revision %s submitted: artifact=%s student=%s", revision.id, artifact_id, student_id
    )

    if audit is not None:
        audit.record(
            AuditEventType.REVISION_SUBMITTED,
            student_id,
            {"artifactId": artifact_id, "revisionId": revision.id},
        )
    return revision


def revision_history(db: Session, artifact_id: int, student_id: int) -> list[Revision]:
    """Revisions of one (artifact, student), newest first, with their grade history."""
    SqlGradingLookup(db).find_artifact(artifact_id)
    return list(
        db.scalars(
            select(Revision)
            .options(selectinload(Revision.grades))
            .where(Revision.artifact_id == artifact_id, Revision.student_id == student_id)
            .order_by(Revision.created_at.desc(), Revision.id.desc())
        )
    )
