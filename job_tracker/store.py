"""Job application persistence: in-memory and single-JSON-document stores."""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from pydantic import ValidationError

from .config import StoreConfig
from .errors import StoreError
from .models import (
    JobApplication,
    JobCreate,
    JobStatus,
    JobUpdate,
    StatusChange,
    job_from_record,
    utc_now,
)

logger = logging.getLogger(__name__)


class JobRepository(ABC):
    """CRUD over a flat list of job applications.

    Subclasses only supply ``_load``/``_save``; every mutation is a full
    read-modify-write under the store's lock.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._closed = False

    @abstractmethod
    def _load(self) -> list[JobApplication]:
        ...

    @abstractmethod
    def _save(self, jobs: list[JobApplication]) -> None:
        ...

    def _check_open(self) -> None:
        if self._closed:
            raise StoreError(f"{type(self).__name__} is closed")

    # --- Reads ---

    def list_jobs(self) -> list[JobApplication]:
        """All jobs, most recently applied first."""
        with self._lock:
            self._check_open()
            jobs = self._load()
        return sorted(jobs, key=lambda j: j.date_applied, reverse=True)

    def get_job(self, job_id: str) -> Optional[JobApplication]:
        with self._lock:
            self._check_open()
            for job in self._load():
                if job.id == job_id:
                    return job
        return None

    def count(self) -> int:
        with self._lock:
            self._check_open()
            return len(self._load())

    # --- Writes ---

    def create_job(self, data: JobCreate) -> JobApplication:
        now = utc_now()
        job = JobApplication(
            id=str(uuid.uuid4()),
            title=data.title,
            company=data.company,
            application_link=data.application_link,
            status=data.status,
            date_applied=data.date_applied or now,
            created_at=now,
            updated_at=now,
            status_history=[StatusChange(status=data.status, changed_at=now)],
        )
        with self._lock:
            self._check_open()
            jobs = self._load()
            jobs.append(job)
            self._save(jobs)
        logger.info("Created job %s: %s @ %s [%s]", job.id, job.title, job.company, job.status.value)
        return job

    def update_job(self, job_id: str, data: JobUpdate) -> Optional[JobApplication]:
        """Merge the provided fields into a job. Returns None if it does not exist."""
        changes = data.changes()
        with self._lock:
            self._check_open()
            jobs = self._load()
            for index, job in enumerate(jobs):
                if job.id == job_id:
                    break
            else:
                return None

            now = utc_now()
            history = list(job.status_history)
            new_status = changes.get("status")
            if new_status is not None and new_status != job.status:
                history.append(StatusChange(status=new_status, changed_at=now))
            updated = job.model_copy(
                update={**changes, "updated_at": now, "status_history": history}
            )
            jobs[index] = updated
            self._save(jobs)
        logger.info("Updated job %s (%s)", job_id, ", ".join(sorted(changes)) or "no fields")
        return updated

    def delete_job(self, job_id: str) -> bool:
        with self._lock:
            self._check_open()
            jobs = self._load()
            remaining = [j for j in jobs if j.id != job_id]
            if len(remaining) == len(jobs):
                return False
            self._save(remaining)
        logger.info("Deleted job %s", job_id)
        return True

    # --- Lifecycle ---

    def close(self) -> None:
        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


class MemoryJobStore(JobRepository):
    """Process-local store. Contents vanish with the process."""

    def __init__(self, jobs: Optional[Iterable[JobApplication]] = None) -> None:
        super().__init__()
        self._jobs: list[JobApplication] = list(jobs or [])

    def _load(self) -> list[JobApplication]:
        return list(self._jobs)

    def _save(self, jobs: list[JobApplication]) -> None:
        self._jobs = list(jobs)


class JsonJobStore(JobRepository):
    """Store backed by one JSON document of the form ``{"jobs": [...]}``.

    Every write replaces the whole document. A missing, unreadable or
    malformed document reads as an empty collection; malformed records are
    skipped. Both cases are logged and never raised.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path).expanduser()

    def _load(self) -> list[JobApplication]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            logger.warning("Could not read job store %s: %s", self.path, exc)
            return []

        try:
            doc = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.warning("Job store %s is not valid JSON (%s); treating as empty", self.path, exc)
            return []

        records = doc.get("jobs") if isinstance(doc, dict) else None
        if not isinstance(records, list):
            logger.warning("Job store %s has no 'jobs' array; treating as empty", self.path)
            return []

        jobs: list[JobApplication] = []
        for i, record in enumerate(records):
            try:
                jobs.append(job_from_record(record))
            except ValidationError as exc:
                logger.warning("Skipping malformed job record #%d in %s: %s", i, self.path, exc.errors()[0]["msg"])
        return jobs

    def _save(self, jobs: list[JobApplication]) -> None:
        doc = {"jobs": [j.to_record() for j in jobs]}
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(doc, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as exc:
            if tmp_path is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
            raise StoreError(f"Failed to write job store {self.path}: {exc}") from exc


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------
_SAMPLES = [
    ("Frontend Developer Intern", "TechCorp", "https://techcorp.com/careers/frontend-intern",
     JobStatus.applied, "2025-01-15", "2025-01-15"),
    ("Software Engineer Intern", "StartupXYZ", "https://startupxyz.com/jobs/swe-intern",
     JobStatus.interviewing, "2025-01-20", "2025-01-22"),
    ("Full Stack Developer", "InnovateLabs", "https://innovatelabs.io/careers",
     JobStatus.offer, "2025-01-25", "2025-01-30"),
    ("Backend Developer", "DataSystems Inc", "https://datasystems.com/apply",
     JobStatus.rejected, "2025-01-10", "2025-01-18"),
]


def sample_jobs() -> list[JobApplication]:
    """Four demo applications, one per status."""
    jobs = []
    for title, company, link, status, applied, updated in _SAMPLES:
        applied_at = datetime.fromisoformat(applied).replace(tzinfo=timezone.utc)
        updated_at = datetime.fromisoformat(updated).replace(tzinfo=timezone.utc)
        history = [StatusChange(status=JobStatus.applied, changed_at=applied_at)]
        if status is not JobStatus.applied:
            history.append(StatusChange(status=status, changed_at=updated_at))
        jobs.append(
            JobApplication(
                id=str(uuid.uuid4()),
                title=title,
                company=company,
                application_link=link,
                status=status,
                date_applied=applied_at,
                created_at=applied_at,
                updated_at=updated_at,
                status_history=history,
            )
        )
    return jobs


def open_store(config: StoreConfig) -> JobRepository:
    """Build the repository selected by ``store.backend``."""
    if config.backend == "memory":
        logger.info("Using in-memory job store%s", " (seeded)" if config.seed_samples else "")
        return MemoryJobStore(sample_jobs() if config.seed_samples else None)
    path = config.resolved_path()
    logger.info("Using JSON job store at %s", path)
    return JsonJobStore(path)
