import enum
import logging
from typing import Any, Protocol

from sqlalchemy.exc import SQLAlchemyError

from coursework.models.audit_log import AuditLog

logger = logging.getLogger(__name__)


class AuditEventType(str, enum.Enum):
    REVISION_SUBMITTED = "REVISION_SUBMITTED"
    REVISION_GRADED = "REVISION_GRADED"
    STAGE_EXEMPTION_SET = "STAGE_EXEMPTION_SET"
    TASK_CREATED = "TASK_CREATED"
    STAGE_UPDATED = "STAGE_UPDATED"
    ARTIFACT_CREATED = "ARTIFACT_CREATED"


class AuditSink(Protocol):
    def record(
        self, event_type: AuditEventType, actor_id: int | None, context: dict[str, Any]
    ) -> None: ...


class SqlAuditSink:
    """
    Writes audit rows in a session of its own, after the business transaction
    committed. Failures are logged and dropped; auditing is best-effort.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def record(
        self, event_type: AuditEventType, actor_id: int | None, context: dict[str, Any]
    ) -> None:
        db = self.session_factory()
        try:
            db.add(AuditLog(event_type=event_type.value, actor_id=actor_id, context=context))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning("audit: failed to record %s", event_type.value, exc_info=True)
        finally:
            db.close()
