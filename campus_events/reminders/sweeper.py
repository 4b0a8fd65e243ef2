import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from campus_events.config.settings import settings
from campus_events.reminders.dtos import SweepResult
from campus_events.reminders.repository import ReminderStore, SqlReminderStore
from campus_events.utils.timezone import utcnow

logger = logging.getLogger(__name__)


class CleanupSweeper:
    """Clears delivery markers of registrations for events long past."""

    def __init__(
        self,
        store: ReminderStore | None = None,
        retention: timedelta | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store or SqlReminderStore()
        self.retention = retention or timedelta(days=settings.reminder_retention_days)
        self.clock = clock

    async def sweep(self, now: datetime | None = None) -> SweepResult:
        now = now or self.clock()
        result = await self.store.clear_markers_before(now - self.retention)
        if result.markers_cleared:
            logger.info(
                "Cleaned up %d reminder markers on %d registrations for events before %s",
                result.markers_cleared,
                result.registrations,
                result.cutoff.isoformat(),
            )
        else:
            logger.info("No old reminder data to clean up")
        return result
