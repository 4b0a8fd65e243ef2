from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel

from campus_events.reminders.dtos import JobStatusDTO, ScanResult
from campus_events.reminders.scheduler import ReminderScheduler
from campus_events.reminders.urls import REMINDERS_RUN_URL, REMINDERS_STATUS_URL

router = APIRouter()


class JobStatusResponse(BaseModel):
    name: str
    schedule: str
    runs: int
    last_run_at: datetime | None = None
    next_run_at: datetime | None = None
    last_error: str | None = None

    @classmethod
    def from_dto(cls, job: JobStatusDTO) -> "JobStatusResponse":
        return cls(
            name=job.name,
            schedule=job.schedule,
            runs=job.runs,
            last_run_at=job.last_run_at,
            next_run_at=job.next_run_at,
            last_error=job.last_error,
        )


class SchedulerStatusResponse(BaseModel):
    is_running: bool
    jobs: list[JobStatusResponse]


class ScanResultResponse(BaseModel):
    tier: str
    window_start: datetime
    window_end: datetime
    events: int
    sent: int
    skipped: int
    failed: int
    excluded: int
    failed_events: int

    @classmethod
    def from_dto(cls, result: ScanResult) -> "ScanResultResponse":
        return cls(
            tier=result.tier,
            window_start=result.window.start,
            window_end=result.window.end,
            events=result.events,
            sent=result.dispatch.sent,
            skipped=result.dispatch.skipped,
            failed=result.dispatch.failed,
            excluded=result.dispatch.excluded,
            failed_events=result.failed_events,
        )


def get_reminder_scheduler(request: Request) -> ReminderScheduler:
    """Dependency returning the scheduler started by the application lifespan."""
    scheduler = getattr(request.app.state, "reminder_scheduler", None)
    if scheduler is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Reminder scheduler is not enabled",
        )
    return scheduler


@router.get(REMINDERS_STATUS_URL, response_model=SchedulerStatusResponse)
async def reminder_status(
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
) -> SchedulerStatusResponse:
    scheduler_status = scheduler.status()
    return SchedulerStatusResponse(
        is_running=scheduler_status.is_running,
        jobs=[JobStatusResponse.from_dto(job) for job in scheduler_status.jobs],
    )


@router.post(REMINDERS_RUN_URL, response_model=list[ScanResultResponse])
async def run_reminders(
    tier: str | None = None,
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler),
) -> list[ScanResultResponse]:
    """Run the reminder scans now instead of waiting for the next tick."""
    try:
        results = await scheduler.run_now(tier_name=tier)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
    return [ScanResultResponse.from_dto(result) for result in results]
