from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from campus_events.config.table_names import TableNames
from campus_events.models.base import Base, TimeStamp


class User(Base, TimeStamp):
    __tablename__ = TableNames.USERS.value

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_superuser: Mapped[bool] = mapped_column(Boolean, default=False)

    # Reminder preferences
    email_reminders: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Tier names the user wants reminders for, None means every tier
    reminder_tiers: Mapped[list[str] | None] = mapped_column(JSON, nullable=True, default=None)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
