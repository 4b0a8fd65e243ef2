from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campus_events.config.table_names import TableNames
from campus_events.events.dtos import EventVisibility
from campus_events.models.base import Base, TimeStamp


class Event(Base, TimeStamp):
    __tablename__ = TableNames.EVENTS.value

    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    venue: Mapped[str | None] = mapped_column(String(100), nullable=True)
    organizer: Mapped[str | None] = mapped_column(String(100), nullable=True)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    capacity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    visibility: Mapped[str] = mapped_column(
        Enum(
            EventVisibility,
            name="event_visibility_enum",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=EventVisibility.PUBLIC,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[UUID | None] = mapped_column(
        ForeignKey(f"{TableNames.USERS.value}.uuid", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Count of registered + checked_in registrations, the compare-and-swap
    # target for capacity checks
    active_registrations: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (
        CheckConstraint("capacity IS NULL OR capacity >= 1", name="ck_events_capacity_positive"),
        CheckConstraint("active_registrations >= 0", name="ck_events_active_registrations"),
        Index("ix_events_start_visibility_active", "start_at", "visibility", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Event {self.title} at {self.start_at}>"
