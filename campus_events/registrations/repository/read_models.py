import abc
from collections.abc import Callable
from datetime import datetime
from uuid import UUID

from sqlalchemy import select

from campus_events.config.database import async_session_manager
from campus_events.config.settings import settings
from campus_events.events.dtos import EventDTO
from campus_events.models.event import Event
from campus_events.models.registration import Registration
from campus_events.registrations.dtos import (
    ACTIVE_STATUSES,
    NotFoundError,
    RegisteredEventDTO,
    RegistrationDTO,
    RegistrationStatus,
    RegistrationStatusDTO,
)
from campus_events.registrations.repository.queries import (
    get_event,
    get_registration,
    load_deliveries,
)
from campus_events.utils.timezone import utcnow


class RegistrationReadModel(abc.ABC):
    @abc.abstractmethod
    async def check_status(self, event_id: UUID, subject_id: UUID) -> RegistrationStatusDTO:
        """
        Check whether a subject is registered for an event.
        is_registered is true only for registered / checked_in registrations.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def list_for_event(
        self, event_id: UUID, status: RegistrationStatus | None = None
    ) -> list[RegistrationDTO]:
        """
        List registrations of an event, newest first.
        Without a status only active registrations are returned.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def list_for_subject(
        self, subject_id: UUID, upcoming_only: bool = True
    ) -> list[RegisteredEventDTO]:
        raise NotImplementedError


class SqlRegistrationReadModel(RegistrationReadModel):
    """SQL implementation of registration read model."""

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        tier_names: list[str] | None = None,
    ) -> None:
        self.clock = clock
        if tier_names is None:
            tier_names = [tier.name for tier in settings.reminder_tiers]
        self.tier_names = tier_names

    async def check_status(self, event_id: UUID, subject_id: UUID) -> RegistrationStatusDTO:
        async with async_session_manager() as session:
            registration = await get_registration(session, event_id, subject_id)
            if registration is None or registration.status not in ACTIVE_STATUSES:
                return RegistrationStatusDTO(is_registered=False, registration=None)

            deliveries = await load_deliveries(session, [registration.uuid])
            return RegistrationStatusDTO(
                is_registered=True,
                registration=RegistrationDTO.from_registration(
                    registration,
                    deliveries=deliveries[registration.uuid],
                    tier_names=self.tier_names,
                ),
            )

    async def list_for_event(
        self, event_id: UUID, status: RegistrationStatus | None = None
    ) -> list[RegistrationDTO]:
        async with async_session_manager() as session:
            if await get_event(session, event_id) is None:
                raise NotFoundError(f"Event {event_id} not found")

            stmt = select(Registration).where(Registration.event_id == event_id)
            if status is None:
                stmt = stmt.where(Registration.status.in_(ACTIVE_STATUSES))
            else:
                stmt = stmt.where(Registration.status == status)
            stmt = stmt.order_by(Registration.registered_at.desc())

            result = await session.execute(stmt)
            registrations = result.scalars().all()
            deliveries = await load_deliveries(session, [r.uuid for r in registrations])
            return [
                RegistrationDTO.from_registration(
                    registration,
                    deliveries=deliveries[registration.uuid],
                    tier_names=self.tier_names,
                )
                for registration in registrations
            ]

    async def list_for_subject(
        self, subject_id: UUID, upcoming_only: bool = True
    ) -> list[RegisteredEventDTO]:
        async with async_session_manager() as session:
            stmt = (
                select(Registration, Event)
                .join(Event, Registration.event_id == Event.uuid)
                .where(Registration.subject_id == subject_id)
                .where(Registration.status.in_(ACTIVE_STATUSES))
                .where(Event.is_active.is_(True))
                .order_by(Event.start_at.asc())
            )
            if upcoming_only:
                stmt = stmt.where(Event.start_at >= self.clock())

            result = await session.execute(stmt)
            rows = result.all()
            deliveries = await load_deliveries(session, [row.Registration.uuid for row in rows])
            return [
                RegisteredEventDTO(
                    registration=RegistrationDTO.from_registration(
                        row.Registration,
                        deliveries=deliveries[row.Registration.uuid],
                        tier_names=self.tier_names,
                    ),
                    event=EventDTO.from_event(row.Event),
                )
                for row in rows
            ]
