"""Data-access helpers shared by the registration and reminder models."""

from collections import defaultdict
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from campus_events.models.event import Event
from campus_events.models.registration import Registration, ReminderDelivery
from campus_events.models.user import User


async def get_event(session: AsyncSession, event_id: UUID) -> Event | None:
    result = await session.execute(select(Event).where(Event.uuid == event_id))
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: UUID) -> User | None:
    result = await session.execute(select(User).where(User.uuid == user_id))
    return result.scalar_one_or_none()


async def get_registration(
    session: AsyncSession, event_id: UUID, subject_id: UUID
) -> Registration | None:
    """Get the registration for an (event, subject) pair, whatever its status."""
    stmt = select(Registration).where(
        Registration.event_id == event_id,
        Registration.subject_id == subject_id,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def load_deliveries(
    session: AsyncSession, registration_ids: Iterable[UUID]
) -> dict[UUID, list[ReminderDelivery]]:
    """Delivery markers grouped by registration."""
    registration_ids = list(registration_ids)
    deliveries: dict[UUID, list[ReminderDelivery]] = defaultdict(list)
    if not registration_ids:
        return deliveries
    result = await session.execute(
        select(ReminderDelivery).where(ReminderDelivery.registration_id.in_(registration_ids))
    )
    for delivery in result.scalars().all():
        deliveries[delivery.registration_id].append(delivery)
    return deliveries
