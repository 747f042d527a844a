"""Timeline events derived from job applications.

Events come from the recorded status history when a job has one. Jobs
without history (older documents) get placeholder follow-up events whose
offsets are derived from a hash of the job id, so the same input always
produces the same timeline. Those events are marked ``synthetic``.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Iterable, Literal, Optional

from pydantic import BaseModel, Field, field_serializer

from .analytics import filter_by_range
from .models import JobApplication, JobStatus, to_iso

EventType = Literal["application", "interview", "offer", "rejection"]


class TimelineEvent(BaseModel):
    id: str
    type: EventType
    date: datetime
    title: str
    company: str
    job_id: str = Field(serialization_alias="jobId")
    status: JobStatus
    description: str
    synthetic: bool = False

    @field_serializer("date", when_used="json")
    def _dump_date(self, v: datetime) -> str:
        return to_iso(v)

    def to_response(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


def offset_days(job_id: str, salt: str, low: int, span: int) -> int:
    """Stable pseudo-random day offset in ``[low, low + span)`` for a job."""
    digest = hashlib.sha256(f"{job_id}:{salt}".encode("utf-8")).digest()
    return low + int.from_bytes(digest[:4], "big") % span


def _event(job: JobApplication, kind: EventType, when: datetime, title: str,
           description: str, synthetic: bool = False, seq: Optional[int] = None) -> TimelineEvent:
    return TimelineEvent(
        id=f"{job.id}-{kind}" if seq is None else f"{job.id}-{kind}-{seq}",
        type=kind,
        date=when,
        title=title,
        company=job.company,
        job_id=job.id,
        status=job.status,
        description=description,
        synthetic=synthetic,
    )


def _recorded_events(job: JobApplication) -> list[TimelineEvent]:
    events = []
    for seq, change in enumerate(job.status_history):
        if change.status is JobStatus.interviewing:
            events.append(_event(job, "interview", change.changed_at, "Interview scheduled",
                                 f"Interview scheduled for {job.title} position", seq=seq))
        elif change.status is JobStatus.offer:
            events.append(_event(job, "offer", change.changed_at, "Offer received",
                                 f"Job offer received for {job.title} position", seq=seq))
        elif change.status is JobStatus.rejected:
            events.append(_event(job, "rejection", change.changed_at, "Application declined",
                                 f"Received rejection for {job.title} position", seq=seq))
    return events


def _placeholder_events(job: JobApplication) -> list[TimelineEvent]:
    applied = job.date_applied
    if job.status is JobStatus.interviewing:
        when = applied + timedelta(days=offset_days(job.id, "interview", 3, 14))
        return [_event(job, "interview", when, "Interview scheduled",
                       f"Interview scheduled for {job.title} position", synthetic=True)]
    if job.status is JobStatus.offer:
        interview = applied + timedelta(days=offset_days(job.id, "interview", 3, 14))
        offer = interview + timedelta(days=offset_days(job.id, "offer", 1, 7))
        return [
            _event(job, "interview", interview, "Interview completed",
                   f"Interview completed for {job.title} position", synthetic=True),
            _event(job, "offer", offer, "Offer received",
                   f"Job offer received for {job.title} position", synthetic=True),
        ]
    if job.status is JobStatus.rejected:
        when = applied + timedelta(days=offset_days(job.id, "rejection", 7, 21))
        return [_event(job, "rejection", when, "Application declined",
                       f"Received rejection for {job.title} position", synthetic=True)]
    return []


def derive_events(
    jobs: Iterable[JobApplication],
    status: Optional[str] = None,
    date_range: str = "all",
    now: Optional[datetime] = None,
) -> list[TimelineEvent]:
    """Timeline for the given jobs, newest event first."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    selected = filter_by_range(jobs, date_range, now)
    if status and status != "all":
        selected = [j for j in selected if j.status.value == status]

    events: list[TimelineEvent] = []
    for job in selected:
        events.append(_event(job, "application", job.date_applied, f"Applied to {job.title}",
                             f"Submitted application for {job.title} position"))
        if job.status_history and job.status_history[-1].status is job.status:
            events.extend(_recorded_events(job))
        else:
            events.extend(_placeholder_events(job))

    events.sort(key=lambda e: (e.date, e.id), reverse=True)
    return events
