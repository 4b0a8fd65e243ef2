"""
Periodic reminder jobs.

One APScheduler job per reminder tier, on an interval trigger, plus the
cleanup sweeper on a cron trigger. Jobs never run alongside themselves and
missed runs are coalesced into one.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from apscheduler.events import EVENT_JOB_MAX_INSTANCES, EVENT_JOB_MISSED, JobEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from campus_events.config.settings import settings
from campus_events.email_service import get_email_service
from campus_events.email_service.base import EmailServiceBase
from campus_events.reminders.dispatcher import ReminderDispatcher
from campus_events.reminders.dtos import (
    JobStatusDTO,
    ReminderTier,
    ScanResult,
    SchedulerStatusDTO,
    SweepResult,
    load_tiers,
)
from campus_events.reminders.scanner import ReminderScanner
from campus_events.reminders.sweeper import CleanupSweeper
from campus_events.utils.timezone import utcnow

logger = logging.getLogger(__name__)

CLEANUP_JOB_NAME = "cleanup"


@dataclass
class ScheduledJob:
    name: str
    action: Callable[[], Awaitable[Any]]
    interval: timedelta | None = None
    cron: str | None = None
    runs: int = 0
    last_run_at: datetime | None = None
    last_error: str | None = None
    # manual runs share it with the scheduled ones
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    @property
    def schedule(self) -> str:
        if self.cron is not None:
            return f"cron {self.cron}"
        return f"every {self.interval}"

    def make_trigger(self, timezone: str) -> BaseTrigger:
        if self.cron is not None:
            return CronTrigger.from_crontab(self.cron, timezone=timezone)
        return IntervalTrigger(seconds=self.interval.total_seconds(), timezone=timezone)

    def status(self, next_run_at: datetime | None = None) -> JobStatusDTO:
        return JobStatusDTO(
            name=self.name,
            schedule=self.schedule,
            runs=self.runs,
            last_run_at=self.last_run_at,
            next_run_at=next_run_at,
            last_error=self.last_error,
        )


def reminder_job_name(tier: ReminderTier) -> str:
    return f"reminders:{tier.name}"


class ReminderScheduler:
    def __init__(
        self,
        tiers: list[ReminderTier],
        scanner: ReminderScanner,
        sweeper: CleanupSweeper,
        cleanup_cron: str | None = None,
        timezone: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.tiers = tiers
        self.scanner = scanner
        self.sweeper = sweeper
        self.timezone = timezone or settings.reminder_timezone
        self.clock = clock

        self._tier_jobs: dict[str, ScheduledJob] = {
            tier.name: ScheduledJob(
                name=reminder_job_name(tier),
                action=self._scan_action(tier),
                interval=tier.scan_interval,
            )
            for tier in tiers
        }
        self._cleanup_job = ScheduledJob(
            name=CLEANUP_JOB_NAME,
            action=self.sweeper.sweep,
            cron=cleanup_cron or settings.reminder_cleanup_cron,
        )
        self._scheduler: AsyncIOScheduler | None = None

    def _scan_action(self, tier: ReminderTier) -> Callable[[], Awaitable[ScanResult]]:
        async def action() -> ScanResult:
            return await self.scanner.scan(tier)

        return action

    @property
    def jobs(self) -> list[ScheduledJob]:
        return [*self._tier_jobs.values(), self._cleanup_job]

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """Schedule every job; tier scans run once right away, cleanup waits for its cron."""
        if self.is_running:
            logger.warning("Reminder scheduler is already running")
            return

        scheduler = AsyncIOScheduler(
            timezone=self.timezone,
            job_defaults={"max_instances": 1, "coalesce": True, "misfire_grace_time": None},
        )
        scheduler.add_listener(self._log_skipped_run, EVENT_JOB_MAX_INSTANCES | EVENT_JOB_MISSED)

        for job in self._tier_jobs.values():
            scheduler.add_job(
                self.run_job,
                trigger=job.make_trigger(self.timezone),
                args=[job],
                id=job.name,
                name=job.name,
                next_run_time=utcnow(),
            )
            logger.info("Scheduled %s %s", job.name, job.schedule)
        scheduler.add_job(
            self.run_job,
            trigger=self._cleanup_job.make_trigger(self.timezone),
            args=[self._cleanup_job],
            id=self._cleanup_job.name,
            name=self._cleanup_job.name,
        )
        logger.info(
            "Scheduled %s %s (%s)",
            self._cleanup_job.name,
            self._cleanup_job.schedule,
            self.timezone,
        )

        scheduler.start()
        self._scheduler = scheduler
        logger.info("Reminder scheduler started with %d jobs", len(scheduler.get_jobs()))

    async def stop(self) -> None:
        if not self.is_running:
            logger.warning("Reminder scheduler is not running")
            return

        scheduler, self._scheduler = self._scheduler, None
        # cancels the job runs still in flight
        scheduler.shutdown(wait=False)
        await asyncio.sleep(0)
        logger.info("Reminder scheduler stopped")

    def _log_skipped_run(self, event: JobEvent) -> None:
        if event.code == EVENT_JOB_MAX_INSTANCES:
            logger.warning("%s is still running, skipping this run", event.job_id)
        else:
            logger.warning("%s missed its run time", event.job_id)

    async def run_job(self, job: ScheduledJob) -> Any:
        """Run a job once, never concurrently with itself. Returns None when it failed."""
        async with job.lock:
            try:
                result = await job.action()
            except Exception as e:
                logger.exception("Scheduled job %s failed", job.name)
                job.last_error = str(e) or e.__class__.__name__
                result = None
            else:
                job.last_error = None
            finally:
                job.runs += 1
                job.last_run_at = self.clock()
        return result

    async def run_now(self, tier_name: str | None = None) -> list[ScanResult]:
        """Run the tier scans immediately, outside of their schedule."""
        if tier_name is not None and tier_name not in self._tier_jobs:
            raise ValueError(f"Unknown reminder tier: {tier_name}")

        results = []
        for name, job in self._tier_jobs.items():
            if tier_name is not None and name != tier_name:
                continue
            result = await self.run_job(job)
            if result is not None:
                results.append(result)
        return results

    async def cleanup_now(self) -> SweepResult | None:
        return await self.run_job(self._cleanup_job)

    def _next_run_at(self, job: ScheduledJob) -> datetime | None:
        if not self.is_running:
            return None
        scheduled = self._scheduler.get_job(job.name)
        return scheduled.next_run_time if scheduled is not None else None

    def status(self) -> SchedulerStatusDTO:
        return SchedulerStatusDTO(
            is_running=self.is_running,
            jobs=[job.status(self._next_run_at(job)) for job in self.jobs],
        )


def build_reminder_scheduler(
    notifier: EmailServiceBase | None = None,
    tiers: list[ReminderTier] | None = None,
) -> ReminderScheduler:
    dispatcher = ReminderDispatcher(notifier=notifier or get_email_service())
    return ReminderScheduler(
        tiers=tiers if tiers is not None else load_tiers(),
        scanner=ReminderScanner(dispatcher=dispatcher),
        sweeper=CleanupSweeper(),
    )


async def start_reminder_scheduler(
    notifier: EmailServiceBase | None = None,
    tiers: list[ReminderTier] | None = None,
) -> ReminderScheduler | None:
    """Start the reminder jobs, unless the email transport fails its check."""
    notifier = notifier or get_email_service()
    if not await notifier.verify_connection():
        logger.warning("Email transport check failed, reminders are disabled")
        return None

    scheduler = build_reminder_scheduler(notifier=notifier, tiers=tiers)
    scheduler.start()
    return scheduler
