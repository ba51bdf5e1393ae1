from coursework.db.session import SessionLocal
from coursework.grading.audit import SqlAuditSink


# every request that needs DB will get a fresh session, and it will always close.
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_audit_sink() -> SqlAuditSink:
    return SqlAuditSink(SessionLocal)
