import logging
from collections.abc import Callable
from datetime import datetime

from campus_events.reminders.dispatcher import ReminderDispatcher
from campus_events.reminders.dtos import DispatchResult, ReminderTier, ScanResult, ScanWindow
from campus_events.reminders.repository import ReminderStore, SqlReminderStore
from campus_events.utils.timezone import utcnow

logger = logging.getLogger(__name__)


class ReminderScanner:
    """Finds events entering a tier's reminder window and hands them to the dispatcher.

    Windows are ``(now + lookahead - window, now + lookahead]``. When a tick
    runs late the next window starts where the previous one ended, so a
    delayed tick does not leave a gap.
    """

    def __init__(
        self,
        dispatcher: ReminderDispatcher,
        store: ReminderStore | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.dispatcher = dispatcher
        self.store = store or SqlReminderStore()
        self.clock = clock
        self._last_window_end: dict[str, datetime] = {}

    def window_for(self, tier: ReminderTier, now: datetime) -> ScanWindow:
        window = tier.window_for(now)
        previous_end = self._last_window_end.get(tier.name)
        if previous_end is not None and previous_end < window.start:
            # never reach back to events that already started
            window = ScanWindow(start=max(previous_end, now), end=window.end)
        return window

    async def scan(self, tier: ReminderTier, now: datetime | None = None) -> ScanResult:
        now = now or self.clock()
        window = self.window_for(tier, now)
        logger.info(
            "Checking for %s reminders between %s and %s",
            tier.name,
            window.start.isoformat(),
            window.end.isoformat(),
        )

        events = await self.store.find_events_in_window(window)
        logger.info("Found %d events needing %s reminders", len(events), tier.name)

        totals = DispatchResult()
        failed_events = 0
        for event in events:
            try:
                totals += await self.dispatcher.dispatch_for_event(event, tier)
            except Exception:
                failed_events += 1
                logger.exception("Error processing %s reminders for event %s", tier.name, event.id)

        self._last_window_end[tier.name] = window.end
        return ScanResult(
            tier=tier.name,
            window=window,
            events=len(events),
            dispatch=totals,
            failed_events=failed_events,
        )

    async def scan_all(
        self, tiers: list[ReminderTier], now: datetime | None = None
    ) -> list[ScanResult]:
        now = now or self.clock()
        return [await self.scan(tier, now) for tier in tiers]
