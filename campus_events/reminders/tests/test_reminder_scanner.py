"""Tests for ReminderScanner."""

from datetime import timedelta
from unittest.mock import AsyncMock

from campus_events.config.database import async_session_maker
from campus_events.events.dtos import EventVisibility
from campus_events.registrations.tests.factories import (
    create_test_event,
    create_test_registration,
    create_test_user,
)
from campus_events.reminders.dispatcher import ReminderDispatcher
from campus_events.reminders.dtos import DispatchResult, ScanWindow, load_tiers
from campus_events.reminders.scanner import ReminderScanner
from campus_events.reminders.tests.fakes import RecordingNotifier, no_sleep
from campus_events.utils.timezone import utcnow

TIER_24H, TIER_1H = load_tiers()


def make_scanner(notifier: RecordingNotifier) -> ReminderScanner:
    return ReminderScanner(dispatcher=ReminderDispatcher(notifier=notifier, sleep=no_sleep))


async def test_scan_reminds_only_public_active_events_in_window():
    now = utcnow()
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session, email="student@campus.example")
        in_window = await create_test_event(
            db_session, start_at=now + timedelta(minutes=50), title="Study Group"
        )
        too_late = await create_test_event(
            db_session, start_at=now + timedelta(minutes=70), title="Too Late"
        )
        too_early = await create_test_event(
            db_session, start_at=now + timedelta(minutes=30), title="Too Early"
        )
        private = await create_test_event(
            db_session,
            start_at=now + timedelta(minutes=50),
            visibility=EventVisibility.PRIVATE,
            title="Private",
        )
        inactive = await create_test_event(
            db_session, start_at=now + timedelta(minutes=50), is_active=False, title="Inactive"
        )
        for event in (in_window, too_late, too_early, private, inactive):
            await create_test_registration(db_session, event, user)
    notifier = RecordingNotifier()

    result = await make_scanner(notifier).scan(TIER_1H, now=now)

    assert result.tier == "1h"
    assert result.events == 1
    assert result.dispatch.sent == 1
    assert [s.event_title for s in notifier.sent] == ["Study Group"]


async def test_scan_twice_within_window_sends_once():
    now = utcnow()
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        event = await create_test_event(db_session, start_at=now + timedelta(hours=23, minutes=30))
        await create_test_registration(db_session, event, user)
    notifier = RecordingNotifier()
    scanner = make_scanner(notifier)

    await scanner.scan(TIER_24H, now=now)
    second = await scanner.scan(TIER_24H, now=now)

    assert len(notifier.sent) == 1
    assert second.dispatch.skipped == 1


async def test_late_tick_extends_window_back_to_previous_end():
    now = utcnow()
    scanner = make_scanner(RecordingNotifier())
    scanner.store = AsyncMock()
    scanner.store.find_events_in_window.return_value = []

    await scanner.scan(TIER_1H, now=now)
    late = now + timedelta(minutes=40)
    result = await scanner.scan(TIER_1H, now=late)

    assert result.window == ScanWindow(start=now + timedelta(hours=1), end=late + timedelta(hours=1))


async def test_catch_up_never_reaches_events_already_started():
    now = utcnow()
    scanner = make_scanner(RecordingNotifier())
    scanner.store = AsyncMock()
    scanner.store.find_events_in_window.return_value = []

    await scanner.scan(TIER_1H, now=now)
    much_later = now + timedelta(hours=3)
    window = scanner.window_for(TIER_1H, much_later)

    assert window.start == much_later
    assert window.end == much_later + timedelta(hours=1)


async def test_failing_event_does_not_stop_the_scan():
    now = utcnow()
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        first = await create_test_event(db_session, start_at=now + timedelta(minutes=50), title="A")
        second = await create_test_event(db_session, start_at=now + timedelta(minutes=55), title="B")
        for event in (first, second):
            await create_test_registration(db_session, event, user)

    dispatcher = AsyncMock(spec=ReminderDispatcher)
    dispatcher.dispatch_for_event.side_effect = [
        RuntimeError("database went away"),
        DispatchResult(sent=1),
    ]
    scanner = ReminderScanner(dispatcher=dispatcher)

    result = await scanner.scan(TIER_1H, now=now)

    assert result.events == 2
    assert result.failed_events == 1
    assert result.dispatch.sent == 1


async def test_scan_all_runs_every_tier():
    now = utcnow()
    async with async_session_maker() as db_session:
        user = await create_test_user(db_session)
        tomorrow = await create_test_event(
            db_session, start_at=now + timedelta(hours=23, minutes=45), title="Tomorrow"
        )
        soon = await create_test_event(
            db_session, start_at=now + timedelta(minutes=50), title="Soon"
        )
        for event in (tomorrow, soon):
            await create_test_registration(db_session, event, user)
    notifier = RecordingNotifier()

    results = await make_scanner(notifier).scan_all([TIER_24H, TIER_1H], now=now)

    assert [r.tier for r in results] == ["24h", "1h"]
    assert sorted((s.event_title, s.time_until_event) for s in notifier.sent) == [
        ("Soon", "in 1 hour"),
        ("Tomorrow", "in 24 hours"),
    ]
