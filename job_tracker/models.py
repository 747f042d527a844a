"""Data models for the job tracker.

Wire and on-disk names are camelCase (``applicationLink``, ``dateApplied``);
Python attributes are snake_case. Every payload coming from a client or
from the JSON document passes through one of the ``parse_*`` helpers or
``job_from_record`` exactly once, so the rest of the code only ever sees
validated, timezone-aware records.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_serializer, field_validator

from .errors import JobValidationError


class JobStatus(str, Enum):
    applied = "Applied"
    interviewing = "Interviewing"
    offer = "Offer"
    rejected = "Rejected"


STATUS_VALUES: list[str] = [s.value for s in JobStatus]
REQUIRED_FIELDS = ("title", "company", "applicationLink", "status")
INVALID_STATUS_MESSAGE = "Invalid job status: must be one of " + ", ".join(STATUS_VALUES)


class AnalysisType(str, Enum):
    comprehensive = "comprehensive"
    job_analysis = "job-analysis"
    application_status = "application-status"
    interview_preparation = "interview-preparation"

    @classmethod
    def resolve(cls, value: Any) -> AnalysisType:
        """Map a caller-supplied tag to a known type. Unknown tags mean comprehensive."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except (ValueError, TypeError):
            return cls.comprehensive


def utc_now() -> datetime:
    return _to_millis(datetime.now(timezone.utc))


def _to_millis(dt: datetime) -> datetime:
    # Stored timestamps carry millisecond precision.
    return dt.replace(microsecond=dt.microsecond // 1000 * 1000)


def coerce_datetime(value: Any) -> datetime:
    """Parse an ISO-8601 string (or date/datetime) into an aware UTC datetime."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.strip())
    else:
        raise ValueError("expected an ISO-8601 timestamp")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return _to_millis(dt.astimezone(timezone.utc))


def to_iso(dt: datetime) -> str:
    """Millisecond ISO string with a ``Z`` suffix, e.g. ``2025-01-15T00:00:00.000Z``."""
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


class StatusChange(BaseModel):
    """One entry of a job's status history."""

    model_config = ConfigDict(populate_by_name=True)

    status: JobStatus
    changed_at: datetime = Field(alias="changedAt")

    @field_validator("changed_at", mode="before")
    @classmethod
    def _parse_changed_at(cls, v: Any) -> datetime:
        return coerce_datetime(v)

    @field_serializer("changed_at", when_used="json")
    def _dump_changed_at(self, v: datetime) -> str:
        return to_iso(v)


class JobApplication(BaseModel):
    """A persisted job application record."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    company: str
    application_link: str = Field(alias="applicationLink")
    status: JobStatus
    date_applied: datetime = Field(alias="dateApplied")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    status_history: list[StatusChange] = Field(default_factory=list, alias="statusHistory")

    @field_validator("date_applied", "created_at", "updated_at", mode="before")
    @classmethod
    def _parse_dates(cls, v: Any) -> datetime:
        return coerce_datetime(v)

    @field_serializer("date_applied", "created_at", "updated_at", when_used="json")
    def _dump_dates(self, v: datetime) -> str:
        return to_iso(v)

    def to_record(self) -> dict[str, Any]:
        """JSON-ready dict using the wire (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True)


class JobCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: str = Field(min_length=1)
    company: str = Field(min_length=1)
    application_link: str = Field(alias="applicationLink", min_length=1)
    status: JobStatus
    date_applied: Optional[datetime] = Field(default=None, alias="dateApplied")

    @field_validator("date_applied", mode="before")
    @classmethod
    def _parse_date_applied(cls, v: Any) -> Optional[datetime]:
        return None if v is None else coerce_datetime(v)


class JobUpdate(BaseModel):
    """Partial update: only the fields the caller actually sent are applied."""

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, min_length=1)
    company: Optional[str] = Field(default=None, min_length=1)
    application_link: Optional[str] = Field(default=None, alias="applicationLink", min_length=1)
    status: Optional[JobStatus] = None
    date_applied: Optional[datetime] = Field(default=None, alias="dateApplied")

    @field_validator("date_applied", mode="before")
    @classmethod
    def _parse_date_applied(cls, v: Any) -> Optional[datetime]:
        return None if v is None else coerce_datetime(v)

    def changes(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class JobSnapshot(BaseModel):
    """Reduced view of a job that the prompt builder serializes."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    company: str
    status: str = ""
    date_applied: Optional[str] = Field(default=None, alias="dateApplied")
    location: Optional[str] = None

    @field_validator("date_applied", mode="before")
    @classmethod
    def _stringify_date(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return to_iso(coerce_datetime(v))
        return v

    @classmethod
    def from_job(cls, job: JobApplication) -> JobSnapshot:
        return cls(
            title=job.title,
            company=job.company,
            status=job.status.value,
            date_applied=to_iso(job.date_applied),
        )

    def summary(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "company": self.company,
            "status": self.status,
            "dateApplied": self.date_applied,
            "location": self.location or "Not specified",
        }


# ---------------------------------------------------------------------------
# Deserialization boundary
# ---------------------------------------------------------------------------
def _filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def _describe(exc: ValidationError) -> str:
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ())) or "body"
    return f"Invalid {field}: {err.get('msg', 'invalid value')}"


def parse_create(payload: Any) -> JobCreate:
    """Validate a create request body, raising JobValidationError on any problem."""
    if not isinstance(payload, dict):
        raise JobValidationError("Request body must be a JSON object")
    missing = [name for name in REQUIRED_FIELDS if not _filled(payload.get(name))]
    if missing:
        raise JobValidationError("Missing required fields: " + ", ".join(missing))
    if payload["status"] not in STATUS_VALUES:
        raise JobValidationError(INVALID_STATUS_MESSAGE)
    try:
        return JobCreate.model_validate(payload)
    except ValidationError as exc:
        raise JobValidationError(_describe(exc)) from exc


def parse_update(payload: Any) -> JobUpdate:
    if not isinstance(payload, dict):
        raise JobValidationError("Request body must be a JSON object")
    status = payload.get("status")
    if status is not None and status not in STATUS_VALUES:
        raise JobValidationError(INVALID_STATUS_MESSAGE)
    try:
        return JobUpdate.model_validate(payload)
    except ValidationError as exc:
        raise JobValidationError(_describe(exc)) from exc


def parse_snapshots(items: Any) -> list[JobSnapshot]:
    """Parse the ``jobs`` array of an insight request. Empty input is rejected."""
    if not isinstance(items, list) or not items:
        raise JobValidationError("No jobs data provided")
    snapshots: list[JobSnapshot] = []
    for i, item in enumerate(items):
        try:
            snapshots.append(JobSnapshot.model_validate(item))
        except ValidationError as exc:
            raise JobValidationError(f"Job #{i + 1}: {_describe(exc)}") from exc
    return snapshots


def job_from_record(data: Any) -> JobApplication:
    """Build a record from its persisted form. Raises pydantic.ValidationError."""
    return JobApplication.model_validate(data)
