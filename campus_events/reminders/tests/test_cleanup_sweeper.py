"""Tests for CleanupSweeper."""

from datetime import timedelta

from sqlalchemy import select

from campus_events.config.database import async_session_maker
from campus_events.models import Registration, ReminderDelivery
from campus_events.registrations.dtos import RegistrationStatus
from campus_events.registrations.tests.factories import (
    create_test_event,
    create_test_registration,
    create_test_user,
)
from campus_events.reminders.sweeper import CleanupSweeper
from campus_events.utils.timezone import utcnow


async def marker_tiers(registration_id) -> set[str]:
    async with async_session_maker() as db_session:
        result = await db_session.execute(
            select(ReminderDelivery.tier).where(
                ReminderDelivery.registration_id == registration_id
            )
        )
        return set(result.scalars().all())


async def test_sweep_clears_markers_of_old_events_only():
    now = utcnow()
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        old_event = await create_test_event(db_session, start_at=now - timedelta(days=4))
        recent_event = await create_test_event(db_session, start_at=now - timedelta(days=1))
        old = await create_test_registration(
            db_session, old_event, user, delivered_tiers=["24h", "1h"]
        )
        recent = await create_test_registration(
            db_session, recent_event, user, delivered_tiers=["24h", "1h"]
        )

    result = await CleanupSweeper().sweep(now=now)

    assert result.markers_cleared == 2
    assert result.registrations == 1
    assert result.cutoff == now - timedelta(days=3)
    assert await marker_tiers(old.uuid) == set()
    assert await marker_tiers(recent.uuid) == {"24h", "1h"}


async def test_sweep_leaves_registration_status_untouched():
    now = utcnow()
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        event = await create_test_event(db_session, start_at=now - timedelta(days=4))
        registration = await create_test_registration(
            db_session,
            event,
            user,
            status=RegistrationStatus.CHECKED_IN,
            delivered_tiers=["1h"],
        )

    await CleanupSweeper().sweep(now=now)

    async with async_session_maker() as db_session:
        stored = await db_session.get(Registration, registration.uuid)
        assert stored.status == RegistrationStatus.CHECKED_IN


async def test_sweep_is_idempotent():
    now = utcnow()
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        event = await create_test_event(db_session, start_at=now - timedelta(days=10))
        await create_test_registration(db_session, event, user, delivered_tiers=["24h"])
    sweeper = CleanupSweeper()

    first = await sweeper.sweep(now=now)
    second = await sweeper.sweep(now=now)

    assert first.markers_cleared == 1
    assert second.markers_cleared == 0
    assert second.registrations == 0


async def test_sweep_uses_configured_retention():
    now = utcnow()
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        event = await create_test_event(db_session, start_at=now - timedelta(days=2))
        registration = await create_test_registration(
            db_session, event, user, delivered_tiers=["24h"]
        )

    await CleanupSweeper(retention=timedelta(days=1)).sweep(now=now)

    assert await marker_tiers(registration.uuid) == set()
