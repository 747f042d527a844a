"""job_tracker: personal job-application tracking with AI career insights."""

from __future__ import annotations

from .analytics import AnalyticsSummary, compute_analytics
from .config import TrackerConfig, load_config
from .insights import InsightResult, InsightState, analyze_posting, generate_insights
from .models import AnalysisType, JobApplication, JobCreate, JobStatus, JobUpdate
from .prompts import build_prompt
from .store import JobRepository, JsonJobStore, MemoryJobStore, open_store
from .timeline import TimelineEvent, derive_events

__all__ = [
    "AnalysisType",
    "AnalyticsSummary",
    "InsightResult",
    "InsightState",
    "JobApplication",
    "JobCreate",
    "JobRepository",
    "JobStatus",
    "JobUpdate",
    "JsonJobStore",
    "MemoryJobStore",
    "TimelineEvent",
    "TrackerConfig",
    "analyze_posting",
    "build_prompt",
    "compute_analytics",
    "derive_events",
    "generate_insights",
    "load_config",
    "open_store",
]
