import logging

from fastapi import FastAPI

from coursework.core.config import LOG_LEVEL
from coursework.core.error_handlers import register_error_handlers
from coursework.core.logging_middleware import LoggingMiddleware
from coursework.db.init_db import init_db
from coursework.routers.aggregation import router as aggregation_router
from coursework.routers.course_structure import router as course_structure_router
from coursework.routers.exemptions import router as exemptions_router
from coursework.routers.grades import router as grades_router
from coursework.routers.grading_queue import router as grading_queue_router
from coursework.routers.revisions import router as revisions_router

logging.basicConfig(level=LOG_LEVEL)

app = FastAPI(title="Coursework Grading")

# Middleware
app.add_middleware(LoggingMiddleware)

register_error_handlers(app)


# Health check
@app.get("/health")
def health():
    return {"status": "ok"}


# Startup event
@app.on_event("startup")
def on_startup():
    init_db()


# Include routers
app.include_router(revisions_router, prefix="/revisions", tags=["revisions"])
app.include_router(grades_router, prefix="/grades", tags=["grades"])
app.include_router(exemptions_router, prefix="/exemptions", tags=["exemptions"])
app.include_router(grading_queue_router, prefix="/grading-queue", tags=["grading-queue"])
app.include_router(aggregation_router, prefix="/aggregation", tags=["aggregation"])

# Course structure (no prefix, routes define full paths)
app.include_router(course_structure_router, tags=["course-structure"])
