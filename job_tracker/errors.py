"""Exception hierarchy shared by the store, the API and the CLI."""

from __future__ import annotations

from typing import Optional


class TrackerError(Exception):
    """Base class for job tracker failures."""


class JobValidationError(TrackerError):
    """Request data is missing a required field or carries a bad value."""


class JobNotFoundError(TrackerError):
    def __init__(self, job_id: str):
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class StoreError(TrackerError):
    """The backing document could not be written."""


class CompletionError(TrackerError):
    """The chat-completion provider failed or returned an unusable body."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code
