"""Tests for ReminderScheduler."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from campus_events.main import app
from campus_events.reminders.dtos import (
    DispatchResult,
    ReminderTier,
    ScanResult,
    ScanWindow,
    SweepResult,
)
from campus_events.reminders.scanner import ReminderScanner
from campus_events.reminders.scheduler import (
    ReminderScheduler,
    ScheduledJob,
    start_reminder_scheduler,
)
from campus_events.reminders.sweeper import CleanupSweeper
from campus_events.reminders.tests.fakes import RecordingNotifier

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def make_tier(name: str, seconds: float) -> ReminderTier:
    return ReminderTier(
        name=name,
        lookahead=timedelta(hours=1),
        scan_interval=timedelta(seconds=seconds),
        window=timedelta(seconds=seconds),
        description="soon",
    )


def make_scan_result(tier: ReminderTier) -> ScanResult:
    return ScanResult(
        tier=tier.name,
        window=ScanWindow(start=NOW, end=NOW + tier.window),
        events=0,
        dispatch=DispatchResult(),
    )


def make_scheduler(tiers, cleanup_cron="0 2 * * *", timezone="UTC"):
    scanner = AsyncMock(spec=ReminderScanner)
    scanner.scan.side_effect = lambda tier: make_scan_result(tier)
    sweeper = AsyncMock(spec=CleanupSweeper)
    sweeper.sweep.return_value = SweepResult(cutoff=NOW, registrations=0, markers_cleared=0)
    scheduler = ReminderScheduler(
        tiers=tiers,
        scanner=scanner,
        sweeper=sweeper,
        cleanup_cron=cleanup_cron,
        timezone=timezone,
        clock=lambda: NOW,
    )
    return scheduler, scanner, sweeper


async def test_start_schedules_one_job_per_tier_plus_cleanup():
    scheduler, scanner, sweeper = make_scheduler([make_tier("24h", 3600), make_tier("1h", 900)])

    scheduler.start()
    await asyncio.sleep(0.1)
    status = scheduler.status()
    await scheduler.stop()

    assert status.is_running is True
    assert [job.name for job in status.jobs] == ["reminders:24h", "reminders:1h", "cleanup"]
    # tier scans run right away, the cleanup waits for its cron time
    assert [job.runs for job in status.jobs] == [1, 1, 0]
    assert status.jobs[1].schedule == "every 0:15:00"
    assert status.jobs[1].next_run_at is not None
    assert status.jobs[2].schedule == "cron 0 2 * * *"
    assert (status.jobs[2].next_run_at.hour, status.jobs[2].next_run_at.minute) == (2, 0)
    assert scanner.scan.await_count == 2
    sweeper.sweep.assert_not_awaited()

    stopped = scheduler.status()
    assert stopped.is_running is False
    assert all(job.next_run_at is None for job in stopped.jobs)


async def test_cleanup_cron_follows_the_configured_timezone():
    scheduler, _, _ = make_scheduler(
        [make_tier("1h", 900)], cleanup_cron="30 3 * * *", timezone="Asia/Jakarta"
    )

    scheduler.start()
    cleanup = scheduler.status().jobs[-1]
    await scheduler.stop()

    assert cleanup.next_run_at.utcoffset() == timedelta(hours=7)
    assert (cleanup.next_run_at.hour, cleanup.next_run_at.minute) == (3, 30)


async def test_jobs_repeat_at_their_interval():
    scheduler, scanner, _ = make_scheduler([make_tier("fast", 0.02)])

    scheduler.start()
    await asyncio.sleep(0.15)
    await scheduler.stop()

    assert scanner.scan.await_count >= 3


async def test_failing_job_is_logged_and_keeps_running(caplog):
    scheduler, scanner, _ = make_scheduler([make_tier("fast", 0.02)])
    scanner.scan.side_effect = RuntimeError("store unavailable")

    scheduler.start()
    await asyncio.sleep(0.1)
    status = scheduler.status()
    await scheduler.stop()

    job = status.jobs[0]
    assert job.runs >= 2
    assert job.last_error == "store unavailable"
    assert "Scheduled job reminders:fast failed" in caplog.text


async def test_double_start_and_stop_only_warn(caplog):
    scheduler, _, _ = make_scheduler([make_tier("1h", 900)])

    await scheduler.stop()
    scheduler.start()
    scheduler.start()
    assert len(scheduler._scheduler.get_jobs()) == 2
    await scheduler.stop()

    assert "Reminder scheduler is not running" in caplog.text
    assert "Reminder scheduler is already running" in caplog.text


async def test_run_now_scans_every_tier():
    tiers = [make_tier("24h", 3600), make_tier("1h", 900)]
    scheduler, scanner, _ = make_scheduler(tiers)

    results = await scheduler.run_now()

    assert [result.tier for result in results] == ["24h", "1h"]
    assert scheduler.status().jobs[0].runs == 1
    assert scheduler.status().jobs[0].last_run_at == NOW


async def test_run_now_single_tier():
    scheduler, scanner, _ = make_scheduler([make_tier("24h", 3600), make_tier("1h", 900)])

    results = await scheduler.run_now(tier_name="1h")

    assert [result.tier for result in results] == ["1h"]
    assert scanner.scan.await_count == 1


async def test_run_now_unknown_tier():
    scheduler, _, _ = make_scheduler([make_tier("1h", 900)])

    with pytest.raises(ValueError, match="Unknown reminder tier"):
        await scheduler.run_now(tier_name="1w")


async def test_run_job_never_overlaps_itself():
    running = 0
    overlaps = 0

    async def slow_action():
        nonlocal running, overlaps
        running += 1
        if running > 1:
            overlaps += 1
        await asyncio.sleep(0.02)
        running -= 1

    scheduler, _, _ = make_scheduler([make_tier("1h", 900)])
    job = ScheduledJob(name="slow", action=slow_action, interval=timedelta(seconds=1))

    await asyncio.gather(*(scheduler.run_job(job) for _ in range(3)))

    assert overlaps == 0
    assert job.runs == 3


async def test_cleanup_now_returns_sweep_result():
    scheduler, _, sweeper = make_scheduler([make_tier("1h", 900)])

    result = await scheduler.cleanup_now()

    assert result.markers_cleared == 0
    sweeper.sweep.assert_awaited_once()


async def test_start_reminder_scheduler_checks_the_email_transport(caplog):
    scheduler = await start_reminder_scheduler(
        notifier=RecordingNotifier(reachable=False), tiers=[make_tier("1h", 900)]
    )

    assert scheduler is None
    assert "Email transport check failed" in caplog.text


async def test_start_reminder_scheduler_starts_when_transport_is_ready():
    scheduler = await start_reminder_scheduler(
        notifier=RecordingNotifier(), tiers=[make_tier("1h", 900)]
    )

    try:
        assert scheduler.is_running
    finally:
        await scheduler.stop()


async def test_lifespan_leaves_reminders_off_when_email_check_fails():
    notifier = RecordingNotifier(reachable=False)

    with patch("campus_events.reminders.scheduler.get_email_service", return_value=notifier):
        async with app.router.lifespan_context(app):
            assert app.state.reminder_scheduler is None
