from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from jobtrack.core.logging import configure_logging
from jobtrack.models import csv_upload, job, job_assignment, phase  # noqa: F401
from jobtrack.routers.auth import router as auth_router
from jobtrack.routers.costing import router as costing_router
from jobtrack.routers.csv_uploads import router as csv_router
from jobtrack.routers.job_assignments import router as job_assignments_router
from jobtrack.routers.jobs import router as jobs_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info("jobtrack API starting")
    yield


app = FastAPI(
    title="Jobtrack Ingestion & Scheduling API",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception", extra={"path": request.url.path})
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


app.include_router(auth_router)
app.include_router(csv_router)
app.include_router(jobs_router)
app.include_router(job_assignments_router)
app.include_router(costing_router)


@app.get("/")
def root():
    return {"status": "Jobtrack API running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
