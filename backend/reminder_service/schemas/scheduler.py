"""Scheduler status and job run reports."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class JobReport(BaseModel):
    job: str
    status: str  # ok | failed | skipped
    started_at: datetime | None = None
    finished_at: datetime | None = None
    result: dict[str, Any] = {}
    error: str | None = None


class JobStatus(BaseModel):
    scheduled: bool
    running: bool
    next_run_at: datetime | None = None
    last_started_at: datetime | None = None
    last_finished_at: datetime | None = None
    last_error: str | None = None
    runs: int = 0


class SchedulerStatus(BaseModel):
    is_running: bool
    total_jobs: int
    jobs: dict[str, JobStatus]
