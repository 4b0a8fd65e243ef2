from datetime import UTC, datetime, timedelta

import pytest

from campus_events.reminders.dtos import (
    DispatchResult,
    JobStatusDTO,
    ScanResult,
    ScanWindow,
    SchedulerStatusDTO,
)
from campus_events.reminders.router import get_reminder_scheduler
from campus_events.reminders.urls import REMINDERS_RUN_URL, REMINDERS_STATUS_URL

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


class StubScheduler:
    def __init__(self):
        self.run_calls = []

    def status(self) -> SchedulerStatusDTO:
        return SchedulerStatusDTO(
            is_running=True,
            jobs=[
                JobStatusDTO(
                    name="reminders:1h",
                    schedule="every 0:15:00",
                    runs=4,
                    last_run_at=NOW,
                    next_run_at=NOW + timedelta(minutes=15),
                )
            ],
        )

    async def run_now(self, tier_name=None):
        self.run_calls.append(tier_name)
        if tier_name == "1w":
            raise ValueError("Unknown reminder tier: 1w")
        return [
            ScanResult(
                tier="1h",
                window=ScanWindow(start=NOW + timedelta(minutes=45), end=NOW + timedelta(hours=1)),
                events=2,
                dispatch=DispatchResult(sent=3, skipped=1, failed=0, excluded=1),
            )
        ]


@pytest.mark.asyncio
async def test_reminder_status(client_factory):
    overrides = {get_reminder_scheduler: lambda: StubScheduler()}

    async with client_factory(overrides) as client:
        response = await client.get(url=REMINDERS_STATUS_URL)

    assert response.status_code == 200
    data = response.json()
    assert data["is_running"] is True
    assert data["jobs"][0]["name"] == "reminders:1h"
    assert data["jobs"][0]["schedule"] == "every 0:15:00"
    assert data["jobs"][0]["runs"] == 4
    assert data["jobs"][0]["last_error"] is None


@pytest.mark.asyncio
async def test_run_reminders(client_factory):
    scheduler = StubScheduler()
    overrides = {get_reminder_scheduler: lambda: scheduler}

    async with client_factory(overrides) as client:
        response = await client.post(url=REMINDERS_RUN_URL, params={"tier": "1h"})

    assert response.status_code == 200
    assert scheduler.run_calls == ["1h"]
    result = response.json()[0]
    assert result["tier"] == "1h"
    assert (result["sent"], result["skipped"], result["failed"], result["excluded"]) == (3, 1, 0, 1)


@pytest.mark.asyncio
async def test_run_reminders_unknown_tier_returns_404(client_factory):
    overrides = {get_reminder_scheduler: lambda: StubScheduler()}

    async with client_factory(overrides) as client:
        response = await client.post(url=REMINDERS_RUN_URL, params={"tier": "1w"})

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_reminder_status_without_scheduler_returns_503(client):
    response = await client.get(url=REMINDERS_STATUS_URL)

    assert response.status_code == 503
