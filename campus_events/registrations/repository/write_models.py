"""Registration lifecycle write operations. Returns DTOs, never ORM models.

Capacity and uniqueness are enforced by the database, not by reads done
here: the event's ``active_registrations`` counter is bumped with a
conditional UPDATE, and the (event, subject) unique constraint rejects a
second insert. Both happen in the same transaction as the registration
write, so a failure on either rolls the other back.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from functools import partial
from uuid import UUID

from sqlalchemy import delete, or_, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.config.database import async_session_manager
from campus_events.config.settings import settings
from campus_events.models.event import Event
from campus_events.models.registration import Registration, ReminderDelivery
from campus_events.registrations.dtos import (
    AlreadyCancelledError,
    AlreadyCheckedInError,
    AlreadyRegisteredError,
    CapacityExceededError,
    NotFoundError,
    RegistrationClosedError,
    RegistrationDTO,
    RegistrationStatus,
    StoreConflictError,
)
from campus_events.registrations.repository.queries import (
    get_event,
    get_registration,
    get_user,
    load_deliveries,
)
from campus_events.utils.timezone import to_utc_aware, utcnow

logger = logging.getLogger(__name__)


class RegistrationWriteModel(ABC):
    @abstractmethod
    async def register(self, event_id: UUID, subject_id: UUID) -> RegistrationDTO:
        """
        Register a subject for an event.

        Raises NotFoundError, RegistrationClosedError, AlreadyRegisteredError,
        CapacityExceededError or StoreConflictError.
        """
        raise NotImplementedError

    @abstractmethod
    async def cancel(self, event_id: UUID, subject_id: UUID) -> RegistrationDTO:
        """
        Cancel a registration. The record is kept with status cancelled.

        Raises NotFoundError or AlreadyCancelledError.
        """
        raise NotImplementedError

    @abstractmethod
    async def check_in(self, event_id: UUID, subject_id: UUID) -> RegistrationDTO:
        raise NotImplementedError


class SqlRegistrationWriteModel(RegistrationWriteModel):
    """SQL implementation of the registration state machine."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(
        self,
        session_overwrite: AsyncSession | None = None,
        clock: Callable[[], datetime] = utcnow,
        tier_names: list[str] | None = None,
    ) -> None:
        self.session_overwrite = session_overwrite
        self.clock = clock
        if tier_names is None:
            tier_names = [tier.name for tier in settings.reminder_tiers]
        self.tier_names = tier_names

    async def register(self, event_id: UUID, subject_id: UUID) -> RegistrationDTO:
        try:
            return await self._register_once(event_id, subject_id)
        except StoreConflictError:
            if self.session_overwrite is not None:
                # the caller's session needs a rollback before it can be reused
                raise
            logger.info(
                "Registration of %s for event %s collided with a concurrent write, retrying",
                subject_id,
                event_id,
            )
            return await self._register_once(event_id, subject_id)

    async def _register_once(self, event_id: UUID, subject_id: UUID) -> RegistrationDTO:
        now = self.clock()
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = await get_event(session, event_id)
            if event is None or not event.is_active:
                raise NotFoundError(f"Event {event_id} not found or no longer available")
            if now >= to_utc_aware(event.start_at):
                raise RegistrationClosedError(event_id)

            subject = await get_user(session, subject_id)
            if subject is None or not subject.is_active:
                raise NotFoundError(f"Subject {subject_id} not found or no longer active")

            existing = await get_registration(session, event_id, subject_id)
            if existing is not None and existing.status != RegistrationStatus.CANCELLED:
                raise AlreadyRegisteredError(event_id, subject_id)

            # Compare-and-swap on the running counter; first write of the transaction
            claimed = await session.execute(
                update(Event)
                .where(Event.uuid == event_id)
                .where(
                    or_(
                        Event.capacity.is_(None),
                        Event.active_registrations < Event.capacity,
                    )
                )
                .values(active_registrations=Event.active_registrations + 1)
                .execution_options(synchronize_session=False)
            )
            if claimed.rowcount == 0:
                raise CapacityExceededError(event_id, event.capacity)

            try:
                if existing is None:
                    registration = Registration(
                        event_id=event_id,
                        subject_id=subject_id,
                        status=RegistrationStatus.REGISTERED,
                        registered_at=now,
                    )
                    session.add(registration)
                    await session.flush()
                    await session.refresh(registration)
                else:
                    registration = await self._reactivate(session, existing, now)
            except IntegrityError as e:
                raise StoreConflictError(
                    f"Concurrent registration for event {event_id} by {subject_id}"
                ) from e

            logger.info("Subject %s registered for event %s", subject_id, event_id)
            # a fresh (or reactivated) registration never carries delivery markers
            return RegistrationDTO.from_registration(registration, tier_names=self.tier_names)

    async def _reactivate(
        self, session: AsyncSession, registration: Registration, now: datetime
    ) -> Registration:
        """Flip a cancelled registration back to registered and reset its markers."""
        result = await session.execute(
            update(Registration)
            .where(
                Registration.uuid == registration.uuid,
                Registration.status == RegistrationStatus.CANCELLED,
            )
            .values(status=RegistrationStatus.REGISTERED, registered_at=now)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise StoreConflictError(f"Registration {registration.uuid} changed concurrently")
        await session.execute(
            delete(ReminderDelivery)
            .where(ReminderDelivery.registration_id == registration.uuid)
            .execution_options(synchronize_session=False)
        )
        await session.refresh(registration)
        return registration

    async def cancel(self, event_id: UUID, subject_id: UUID) -> RegistrationDTO:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            registration = await get_registration(session, event_id, subject_id)
            if registration is None:
                raise NotFoundError("Registration not found")
            if registration.status == RegistrationStatus.CANCELLED:
                raise AlreadyCancelledError(event_id, subject_id)

            result = await session.execute(
                update(Registration)
                .where(
                    Registration.uuid == registration.uuid,
                    Registration.status != RegistrationStatus.CANCELLED,
                )
                .values(status=RegistrationStatus.CANCELLED)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                # a concurrent cancel got there first
                raise AlreadyCancelledError(event_id, subject_id)

            await session.execute(
                update(Event)
                .where(Event.uuid == event_id, Event.active_registrations > 0)
                .values(active_registrations=Event.active_registrations - 1)
                .execution_options(synchronize_session=False)
            )

            await session.refresh(registration)
            deliveries = await load_deliveries(session, [registration.uuid])
            logger.info("Subject %s cancelled registration for event %s", subject_id, event_id)
            return RegistrationDTO.from_registration(
                registration,
                deliveries=deliveries[registration.uuid],
                tier_names=self.tier_names,
            )

    async def check_in(self, event_id: UUID, subject_id: UUID) -> RegistrationDTO:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            registration = await get_registration(session, event_id, subject_id)
            if registration is None:
                raise NotFoundError("Registration not found")
            if registration.status == RegistrationStatus.CANCELLED:
                raise AlreadyCancelledError(event_id, subject_id)
            if registration.status == RegistrationStatus.CHECKED_IN:
                raise AlreadyCheckedInError(event_id, subject_id)

            result = await session.execute(
                update(Registration)
                .where(
                    Registration.uuid == registration.uuid,
                    Registration.status == RegistrationStatus.REGISTERED,
                )
                .values(status=RegistrationStatus.CHECKED_IN)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise StoreConflictError(f"Registration {registration.uuid} changed concurrently")

            await session.refresh(registration)
            deliveries = await load_deliveries(session, [registration.uuid])
            return RegistrationDTO.from_registration(
                registration,
                deliveries=deliveries[registration.uuid],
                tier_names=self.tier_names,
            )
