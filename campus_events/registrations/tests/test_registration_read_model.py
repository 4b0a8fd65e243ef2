"""Tests for SqlRegistrationReadModel."""

from datetime import timedelta
from uuid import uuid4

import pytest

from campus_events.config.database import async_session_maker
from campus_events.registrations.dtos import NotFoundError, RegistrationStatus
from campus_events.registrations.repository.read_models import SqlRegistrationReadModel
from campus_events.registrations.tests.factories import (
    create_test_event,
    create_test_registration,
    create_test_user,
)
from campus_events.utils.timezone import utcnow


def make_read_model() -> SqlRegistrationReadModel:
    return SqlRegistrationReadModel(tier_names=["24h", "1h"])


async def test_check_status_registered():
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        event = await create_test_event(db_session)
        await create_test_registration(db_session, event, user, delivered_tiers=["24h"])

    status = await make_read_model().check_status(event.uuid, user.uuid)

    assert status.is_registered is True
    assert status.registration.status == RegistrationStatus.REGISTERED
    assert status.registration.reminders["24h"].sent is True
    assert status.registration.reminders["24h"].sent_at is not None
    assert status.registration.reminders["1h"].sent is False


async def test_check_status_checked_in_counts_as_registered():
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        event = await create_test_event(db_session)
        await create_test_registration(
            db_session, event, user, status=RegistrationStatus.CHECKED_IN
        )

    status = await make_read_model().check_status(event.uuid, user.uuid)

    assert status.is_registered is True


async def test_check_status_cancelled_is_not_registered():
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        event = await create_test_event(db_session)
        await create_test_registration(
            db_session, event, user, status=RegistrationStatus.CANCELLED
        )

    status = await make_read_model().check_status(event.uuid, user.uuid)

    assert status.is_registered is False
    assert status.registration is None


async def test_check_status_without_registration():
    status = await make_read_model().check_status(uuid4(), uuid4())

    assert status.is_registered is False
    assert status.registration is None


async def test_list_for_event_returns_active_registrations_newest_first():
    now = utcnow()
    async with async_session_maker() as db_session:
        event = await create_test_event(db_session)
        early = await create_test_user(db_session, name="Early")
        late = await create_test_user(db_session, name="Late")
        gone = await create_test_user(db_session, name="Gone")
        await create_test_registration(
            db_session, event, early, registered_at=now - timedelta(hours=2)
        )
        await create_test_registration(
            db_session,
            event,
            late,
            status=RegistrationStatus.CHECKED_IN,
            registered_at=now - timedelta(hours=1),
        )
        await create_test_registration(
            db_session, event, gone, status=RegistrationStatus.CANCELLED
        )

    registrations = await make_read_model().list_for_event(event.uuid)

    assert [r.subject_id for r in registrations] == [late.uuid, early.uuid]


async def test_list_for_event_filtered_by_status():
    async with async_session_maker() as db_session:
        event = await create_test_event(db_session)
        active = await create_test_user(db_session)
        gone = await create_test_user(db_session)
        await create_test_registration(db_session, event, active)
        await create_test_registration(
            db_session, event, gone, status=RegistrationStatus.CANCELLED
        )

    registrations = await make_read_model().list_for_event(
        event.uuid, status=RegistrationStatus.CANCELLED
    )

    assert [r.subject_id for r in registrations] == [gone.uuid]


async def test_list_for_unknown_event_raises_not_found():
    with pytest.raises(NotFoundError):
        await make_read_model().list_for_event(uuid4())


async def test_list_for_subject_returns_upcoming_events_soonest_first():
    now = utcnow()
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        later = await create_test_event(db_session, start_at=now + timedelta(days=5), title="Later")
        sooner = await create_test_event(db_session, start_at=now + timedelta(days=1), title="Sooner")
        past = await create_test_event(db_session, start_at=now - timedelta(days=1), title="Past")
        inactive = await create_test_event(db_session, is_active=False, title="Inactive")
        cancelled = await create_test_event(db_session, title="Cancelled")
        for event in (later, sooner, past, inactive):
            await create_test_registration(db_session, event, user)
        await create_test_registration(
            db_session, cancelled, user, status=RegistrationStatus.CANCELLED
        )

    items = await make_read_model().list_for_subject(user.uuid)

    assert [item.event.title for item in items] == ["Sooner", "Later"]
    assert all(item.registration.subject_id == user.uuid for item in items)


async def test_list_for_subject_including_past_events():
    now = utcnow()
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        past = await create_test_event(db_session, start_at=now - timedelta(days=1), title="Past")
        upcoming = await create_test_event(db_session, title="Upcoming")
        await create_test_registration(db_session, past, user)
        await create_test_registration(db_session, upcoming, user)

    items = await make_read_model().list_for_subject(user.uuid, upcoming_only=False)

    assert [item.event.title for item in items] == ["Past", "Upcoming"]
