import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from campus_events.config.settings import settings
from campus_events.email_service.base import EmailServiceBase
from campus_events.events.dtos import EventDTO
from campus_events.reminders.dtos import (
    DispatchResult,
    NotifierFailure,
    RecipientDTO,
    ReminderTargetDTO,
    ReminderTier,
)
from campus_events.reminders.repository import ReminderStore, SqlReminderStore
from campus_events.utils.timezone import utcnow

logger = logging.getLogger(__name__)


class ReminderDispatcher:
    """Sends one tier's reminders for an event, at most once per registration.

    Recipient filtering (inactive accounts, opt-outs) happens here rather than
    in the store query. The delivery marker is claimed before the notifier is
    called, so overlapping ticks or several workers send each reminder once.
    A failed send releases the claim for the next tick to retry; it never
    aborts the rest of the batch.
    """

    def __init__(
        self,
        notifier: EmailServiceBase,
        store: ReminderStore | None = None,
        send_delay_seconds: float | None = None,
        send_timeout_seconds: float | None = None,
        clock: Callable[[], datetime] = utcnow,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.notifier = notifier
        self.store = store or SqlReminderStore()
        if send_delay_seconds is None:
            send_delay_seconds = settings.reminder_send_delay_seconds
        if send_timeout_seconds is None:
            send_timeout_seconds = settings.reminder_send_timeout_seconds
        self.send_delay_seconds = send_delay_seconds
        self.send_timeout_seconds = send_timeout_seconds
        self.clock = clock
        self._sleep = sleep

    async def dispatch_for_event(self, event: EventDTO, tier: ReminderTier) -> DispatchResult:
        targets = await self.store.load_targets(event.id)
        eligible = [t for t in targets if t.recipient.wants_reminder(tier.name)]
        excluded = len(targets) - len(eligible)

        logger.info(
            "Sending %s reminders to %d recipients for '%s' (%d opted out or inactive)",
            tier.name,
            len(eligible),
            event.title,
            excluded,
        )

        sent = skipped = failed = 0
        for target in eligible:
            if tier.name in target.delivered_tiers:
                logger.debug(
                    "%s reminder already sent to %s for '%s'",
                    tier.name,
                    target.recipient.email,
                    event.title,
                )
                skipped += 1
                continue

            try:
                claimed = await self._claim(target, tier)
            except Exception:
                logger.exception(
                    "Could not claim %s reminder for registration %s",
                    tier.name,
                    target.registration_id,
                )
                failed += 1
                continue
            if not claimed:
                skipped += 1
                continue

            try:
                await self._send(target.recipient, event, tier)
            except NotifierFailure as e:
                failed += 1
                logger.warning(
                    "Failed to send %s reminder to %s for '%s': %s",
                    tier.name,
                    target.recipient.email,
                    event.title,
                    e,
                )
                await self._release(target, tier)
            except asyncio.CancelledError:
                await self._release(target, tier)
                raise
            else:
                sent += 1

            await self._sleep(self.send_delay_seconds)

        result = DispatchResult(sent=sent, skipped=skipped, failed=failed, excluded=excluded)
        logger.info(
            "%s reminders for '%s': %d sent, %d skipped, %d failed",
            tier.name,
            event.title,
            result.sent,
            result.skipped,
            result.failed,
        )
        return result

    async def _send(self, recipient: RecipientDTO, event: EventDTO, tier: ReminderTier) -> None:
        try:
            await asyncio.wait_for(
                self.notifier.send_event_reminder(
                    recipient=recipient,
                    event=event,
                    time_until_event=tier.description,
                ),
                timeout=self.send_timeout_seconds,
            )
        except TimeoutError as e:
            raise NotifierFailure(
                f"notifier timed out after {self.send_timeout_seconds}s"
            ) from e
        except Exception as e:
            raise NotifierFailure(str(e) or e.__class__.__name__) from e

    async def _claim(self, target: ReminderTargetDTO, tier: ReminderTier) -> bool:
        claimed = await self.store.claim_delivery(
            target.registration_id, tier.name, self.clock()
        )
        if not claimed:
            logger.info(
                "%s reminder for registration %s was already claimed by another worker",
                tier.name,
                target.registration_id,
            )
        return claimed

    async def _release(self, target: ReminderTargetDTO, tier: ReminderTier) -> None:
        try:
            await self.store.release_delivery(target.registration_id, tier.name)
        except Exception:
            # the marker stays set, so this tier will not be retried for the registration
            logger.exception(
                "Could not release %s reminder claim for registration %s",
                tier.name,
                target.registration_id,
            )
