from coursework.db.base_class import Base

# import models so SQLAlchemy registers them
from coursework.models import (  # noqa: F401
    audit_log,
    course,
    exemption,
    grade,
    grading_queue,
    revision,
    task,
    user,
)
