from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, Enum, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from campus_events.config.table_names import TableNames
from campus_events.models.base import Base, TimeStamp
from campus_events.registrations.dtos import RegistrationStatus


class Registration(Base, TimeStamp):
    __tablename__ = TableNames.REGISTRATIONS.value

    event_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.EVENTS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    subject_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.USERS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        Enum(
            RegistrationStatus,
            name="registration_status_enum",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=RegistrationStatus.REGISTERED,
        nullable=False,
    )
    registered_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        # One registration per (event, subject) whatever its status
        UniqueConstraint("event_id", "subject_id", name="uq_registrations_event_subject"),
        Index("ix_registrations_status_event", "status", "event_id"),
    )

    def __repr__(self) -> str:
        return f"<Registration {self.event_id}/{self.subject_id} - {self.status}>"


class ReminderDelivery(Base, TimeStamp):
    """Delivery marker: the row exists once a tier's reminder went out."""

    __tablename__ = TableNames.REMINDER_DELIVERIES.value

    registration_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.REGISTRATIONS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tier: Mapped[str] = mapped_column(String(32), nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("registration_id", "tier", name="uq_reminder_deliveries_registration_tier"),
    )

    def __repr__(self) -> str:
        return f"<ReminderDelivery {self.tier} for {self.registration_id}>"
