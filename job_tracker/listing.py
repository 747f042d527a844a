"""Search, filter, sort and export helpers for job lists."""

from __future__ import annotations

import csv
import io
from typing import Iterable, Optional

from .models import JobApplication, JobStatus

SORT_FIELDS = {
    "dateApplied": lambda j: j.date_applied,
    "title": lambda j: j.title.lower(),
    "company": lambda j: j.company.lower(),
    "status": lambda j: j.status.value.lower(),
}

CSV_HEADERS = ["Job Title", "Company", "Status", "Date Applied", "Application Link"]


def filter_jobs(
    jobs: Iterable[JobApplication],
    search: Optional[str] = None,
    status: Optional[str] = None,
) -> list[JobApplication]:
    """Case-insensitive title/company search plus an optional exact status match."""
    out = list(jobs)
    term = (search or "").strip().lower()
    if term:
        out = [j for j in out if term in j.title.lower() or term in j.company.lower()]
    if status and status != "all":
        out = [j for j in out if j.status.value == status]
    return out


def sort_jobs(
    jobs: Iterable[JobApplication],
    field: str = "dateApplied",
    direction: str = "desc",
) -> list[JobApplication]:
    key = SORT_FIELDS.get(field)
    if key is None:
        raise ValueError(f"Cannot sort by {field!r}; choose one of {', '.join(SORT_FIELDS)}")
    return sorted(jobs, key=key, reverse=direction == "desc")


def job_stats(jobs: Iterable[JobApplication]) -> dict[str, int]:
    jobs = list(jobs)
    by_status = {s: sum(1 for j in jobs if j.status is s) for s in JobStatus}
    return {
        "total": len(jobs),
        "applied": by_status[JobStatus.applied],
        "interviewing": by_status[JobStatus.interviewing],
        "offers": by_status[JobStatus.offer],
        "rejected": by_status[JobStatus.rejected],
    }


def export_csv(jobs: Iterable[JobApplication]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for j in jobs:
        writer.writerow([
            j.title,
            j.company,
            j.status.value,
            j.date_applied.strftime("%Y-%m-%d"),
            j.application_link or "N/A",
        ])
    return buf.getvalue()
