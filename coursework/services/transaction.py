import logging
from contextlib import contextmanager

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from coursework.core.errors import ConflictError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session):
    """Commit on success; roll back and re-raise on any failure."""
    try:
        yield db
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.info("conflicting write detected, transaction rolled back")
        raise ConflictError("Grading queue row was modified concurrently") from exc
    except Exception:
        db.rollback()
        raise


def run_with_conflict_retry(operation, *args, **kwargs):
    """Run a whole service operation, retrying it once after a ConflictError."""
    try:
        return operation(*args, **kwargs)
    except ConflictError:
        logger.info("retrying %s after conflict", getattr(operation, "__name__", operation))
        return operation(*args, **kwargs)
