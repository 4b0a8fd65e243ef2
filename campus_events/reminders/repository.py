"""Store operations used by the reminder scanner, dispatcher and sweeper."""

import abc
from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError

from campus_events.config.database import async_session_manager
from campus_events.events.dtos import EventDTO, EventVisibility
from campus_events.models.event import Event
from campus_events.models.registration import Registration, ReminderDelivery
from campus_events.models.user import User
from campus_events.registrations.dtos import ACTIVE_STATUSES
from campus_events.registrations.repository.queries import load_deliveries
from campus_events.reminders.dtos import RecipientDTO, ReminderTargetDTO, ScanWindow, SweepResult


class ReminderStore(abc.ABC):
    @abc.abstractmethod
    async def find_events_in_window(self, window: ScanWindow) -> list[EventDTO]:
        """Active, public events whose start time falls in the window."""
        raise NotImplementedError

    @abc.abstractmethod
    async def load_targets(self, event_id: UUID) -> list[ReminderTargetDTO]:
        """Registered / checked-in registrations of an event with their recipients."""
        raise NotImplementedError

    @abc.abstractmethod
    async def claim_delivery(self, registration_id: UUID, tier: str, sent_at: datetime) -> bool:
        """
        Atomically set a tier's marker ahead of sending.
        Returns False when the marker is already set, by an earlier tick or a
        concurrent one; only the caller that got True may send.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def release_delivery(self, registration_id: UUID, tier: str) -> None:
        """Drop a claimed marker again after the send failed."""
        raise NotImplementedError

    @abc.abstractmethod
    async def clear_markers_before(self, cutoff: datetime) -> SweepResult:
        """Drop the markers of registrations for events that started before cutoff."""
        raise NotImplementedError


class SqlReminderStore(ReminderStore):
    async def find_events_in_window(self, window: ScanWindow) -> list[EventDTO]:
        stmt = (
            select(Event)
            .where(Event.start_at > window.start)
            .where(Event.start_at <= window.end)
            .where(Event.is_active.is_(True))
            .where(Event.visibility == EventVisibility.PUBLIC)
            .order_by(Event.start_at.asc())
        )
        async with async_session_manager() as session:
            result = await session.execute(stmt)
            return [EventDTO.from_event(event) for event in result.scalars().all()]

    async def load_targets(self, event_id: UUID) -> list[ReminderTargetDTO]:
        stmt = (
            select(Registration, User)
            .join(User, Registration.subject_id == User.uuid)
            .where(Registration.event_id == event_id)
            .where(Registration.status.in_(ACTIVE_STATUSES))
            .order_by(Registration.registered_at.asc())
        )
        async with async_session_manager() as session:
            result = await session.execute(stmt)
            rows = result.all()
            deliveries = await load_deliveries(session, [row.Registration.uuid for row in rows])
            return [
                ReminderTargetDTO(
                    registration_id=row.Registration.uuid,
                    recipient=RecipientDTO.from_user(row.User),
                    delivered_tiers=frozenset(
                        delivery.tier for delivery in deliveries[row.Registration.uuid]
                    ),
                )
                for row in rows
            ]

    async def claim_delivery(self, registration_id: UUID, tier: str, sent_at: datetime) -> bool:
        # the unique (registration_id, tier) constraint makes this insert the
        # conditional write: only one concurrent writer can succeed
        try:
            async with async_session_manager() as session:
                session.add(
                    ReminderDelivery(registration_id=registration_id, tier=tier, sent_at=sent_at)
                )
                await session.flush()
        except IntegrityError:
            return False
        return True

    async def release_delivery(self, registration_id: UUID, tier: str) -> None:
        async with async_session_manager() as session:
            await session.execute(
                delete(ReminderDelivery)
                .where(ReminderDelivery.registration_id == registration_id)
                .where(ReminderDelivery.tier == tier)
                .execution_options(synchronize_session=False)
            )

    async def clear_markers_before(self, cutoff: datetime) -> SweepResult:
        stale_registrations = (
            select(Registration.uuid)
            .join(Event, Registration.event_id == Event.uuid)
            .where(Event.start_at < cutoff)
        )
        async with async_session_manager() as session:
            affected = await session.execute(
                select(ReminderDelivery.registration_id)
                .where(ReminderDelivery.registration_id.in_(stale_registrations))
                .distinct()
            )
            registration_count = len(affected.scalars().all())

            result = await session.execute(
                delete(ReminderDelivery)
                .where(ReminderDelivery.registration_id.in_(stale_registrations))
                .execution_options(synchronize_session=False)
            )
            return SweepResult(
                cutoff=cutoff,
                registrations=registration_count,
                markers_cleared=result.rowcount,
            )
