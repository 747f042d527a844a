"""Job Tracker Dashboard: FastAPI backend."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

import uvicorn
from fastapi import APIRouter, Body, Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from job_tracker.analytics import compute_analytics
from job_tracker.config import TrackerConfig, load_config
from job_tracker.errors import JobValidationError, StoreError
from job_tracker.insights import analyze_posting, generate_insights
from job_tracker.listing import export_csv, filter_jobs, job_stats, sort_jobs
from job_tracker.models import (
    INVALID_STATUS_MESSAGE,
    STATUS_VALUES,
    AnalysisType,
    parse_create,
    parse_snapshots,
    parse_update,
)
from job_tracker.store import JobRepository, open_store
from job_tracker.timeline import derive_events

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def get_store(request: Request) -> JobRepository:
    return request.app.state.store


def get_config(request: Request) -> TrackerConfig:
    return request.app.state.config


def _error(message: str, status: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status)


def _not_found() -> JSONResponse:
    return _error("Job not found", 404)


def _check_status_filter(status: Optional[str]) -> None:
    if status and status != "all" and status not in STATUS_VALUES:
        raise JobValidationError(INVALID_STATUS_MESSAGE)


def _listed(store: JobRepository, search: Optional[str], status: Optional[str], sort: str, order: str):
    _check_status_filter(status)
    jobs = filter_jobs(store.list_jobs(), search=search, status=status)
    try:
        return sort_jobs(jobs, field=sort, direction=order)
    except ValueError as exc:
        raise JobValidationError(str(exc)) from exc


# ---------------------------------------------------------------------------
# Routes: jobs
# ---------------------------------------------------------------------------
@router.get("/jobs")
def list_jobs(
    search: Optional[str] = None,
    status: Optional[str] = None,
    sort: str = "dateApplied",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    store: JobRepository = Depends(get_store),
):
    jobs = _listed(store, search, status, sort, order)
    return {"success": True, "jobs": [j.to_record() for j in jobs]}


@router.post("/jobs")
def create_job(payload: Any = Body(None), store: JobRepository = Depends(get_store)):
    data = parse_create(payload)
    job = store.create_job(data)
    return JSONResponse({"success": True, "job": job.to_record()}, 201)


@router.get("/jobs/{job_id}")
def get_job(job_id: str, store: JobRepository = Depends(get_store)):
    job = store.get_job(job_id)
    if job is None:
        return _not_found()
    return {"success": True, "job": job.to_record()}


@router.put("/jobs/{job_id}")
def update_job(job_id: str, payload: Any = Body(None), store: JobRepository = Depends(get_store)):
    if store.get_job(job_id) is None:
        return _not_found()
    data = parse_update(payload)
    job = store.update_job(job_id, data)
    if job is None:
        return _not_found()
    return {"success": True, "job": job.to_record()}


@router.delete("/jobs/{job_id}")
def delete_job(job_id: str, store: JobRepository = Depends(get_store)):
    if not store.delete_job(job_id):
        return _not_found()
    return {"success": True, "message": "Job deleted successfully"}


@router.get("/export/jobs.csv")
def export_jobs(
    search: Optional[str] = None,
    status: Optional[str] = None,
    sort: str = "dateApplied",
    order: str = Query("desc", pattern="^(asc|desc)$"),
    store: JobRepository = Depends(get_store),
):
    jobs = _listed(store, search, status, sort, order)
    filename = f"job-applications-{datetime.now(timezone.utc):%Y-%m-%d}.csv"
    return Response(
        export_csv(jobs),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------------------------------------------------------------------------
# Routes: dashboard data
# ---------------------------------------------------------------------------
@router.get("/stats")
def stats(store: JobRepository = Depends(get_store)):
    return {"success": True, "stats": job_stats(store.list_jobs())}


@router.get("/analytics")
def analytics(date_range: str = Query("all", alias="range"), store: JobRepository = Depends(get_store)):
    summary = compute_analytics(store.list_jobs(), date_range)
    return {"success": True, "analytics": summary.to_response()}


@router.get("/timeline")
def timeline(
    status: Optional[str] = None,
    date_range: str = Query("all", alias="range"),
    store: JobRepository = Depends(get_store),
):
    _check_status_filter(status)
    events = derive_events(store.list_jobs(), status=status, date_range=date_range)
    return {"success": True, "events": [e.to_response() for e in events]}


# ---------------------------------------------------------------------------
# Routes: AI insights
# ---------------------------------------------------------------------------
@router.post("/ai-insights")
def ai_insights(payload: Any = Body(None), config: TrackerConfig = Depends(get_config)):
    if not isinstance(payload, dict):
        raise JobValidationError("Request body must be a JSON object")
    snapshots = parse_snapshots(payload.get("jobs"))
    kind = AnalysisType.resolve(payload.get("analysisType"))
    result = generate_insights(snapshots, kind, config.ai)
    return {**result.to_response(), "analysisType": kind.value}


@router.post("/ai/analyze")
def ai_analyze(payload: Any = Body(None), config: TrackerConfig = Depends(get_config)):
    if not isinstance(payload, dict):
        raise JobValidationError("Request body must be a JSON object")
    kind = AnalysisType.resolve(payload.get("analysisType"))
    result = analyze_posting(
        str(payload.get("jobTitle") or ""),
        str(payload.get("company") or ""),
        str(payload.get("jobDescription") or ""),
        kind,
        config.ai,
    )
    return {**result.to_response(), "analysisType": kind.value}


@router.get("/ai/status")
def ai_status(config: TrackerConfig = Depends(get_config)):
    """Whether a credential is configured. Makes no network call."""
    return {
        "configured": bool(config.ai.api_key()),
        "model": config.ai.model,
        "url": config.ai.url,
    }


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
async def _validation_error(request: Request, exc: JobValidationError) -> JSONResponse:
    return _error(str(exc), 400)


async def _request_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    detail = errors[0].get("msg", "invalid request") if errors else "invalid request"
    return _error(f"Invalid request: {detail}", 400)


async def _store_error(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return _error(str(exc), 500)


async def _unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return _error("Internal server error", 500)


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------
def create_app(store: Optional[JobRepository] = None, config: Optional[TrackerConfig] = None) -> FastAPI:
    """Build the API around a job repository.

    The repository is opened here (or injected by the caller) and closed
    when the application shuts down.
    """
    config = config or load_config()
    store = store or open_store(config.store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        logger.info("Closing job store")
        app.state.store.close()

    app = FastAPI(title="Job Tracker Dashboard", lifespan=lifespan)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
    app.state.store = store
    app.state.config = config

    app.add_exception_handler(JobValidationError, _validation_error)
    app.add_exception_handler(RequestValidationError, _request_error)
    app.add_exception_handler(StoreError, _store_error)
    app.add_exception_handler(Exception, _unexpected_error)

    @app.get("/")
    def index():
        return {
            "name": "job_tracker",
            "endpoints": sorted({route.path for route in router.routes}),
        }

    app.include_router(router)
    return app


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    cfg = load_config()
    uvicorn.run(
        "dashboard.server:create_app",
        factory=True,
        host=cfg.server.host,
        port=cfg.server.port,
    )
