"""Scheduler endpoints: status and manual job triggers (operations / testing)."""

from fastapi import APIRouter, Depends, HTTPException

from reminder_service.api.deps import SchedulerDep, require_admin
from reminder_service.schemas.scheduler import JobReport, SchedulerStatus
from reminder_service.services.scheduler import JOB_NAMES

router = APIRouter(prefix="/scheduler", tags=["scheduler"], dependencies=[Depends(require_admin)])


@router.get(
    "/status",
    response_model=SchedulerStatus,
    summary="Scheduler and job status",
    responses={401: {"description": "Invalid admin key"}},
)
async def get_status(scheduler: SchedulerDep) -> SchedulerStatus:
    return scheduler.status()


@router.post(
    "/jobs/{name}/run",
    response_model=JobReport,
    summary="Run a scheduler job now",
    responses={401: {"description": "Invalid admin key"}, 404: {"description": "Unknown job"}},
)
async def run_job(name: str, scheduler: SchedulerDep) -> JobReport:
    """Run due / recurring / cleanup immediately. Returns status=skipped if that job is already running."""
    if name not in JOB_NAMES:
        raise HTTPException(status_code=404, detail=f"Unknown job '{name}'. Expected one of: {', '.join(JOB_NAMES)}")
    return await scheduler.run_job(name)
