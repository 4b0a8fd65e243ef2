from uuid import UUID

from sqlalchemy import Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campus_events.config.table_names import TableNames
from campus_events.models.base import Base, TimeStamp


class EmailLog(Base, TimeStamp):
    __tablename__ = TableNames.EMAIL_LOGS.value

    provider_message_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True, index=True, unique=True
    )

    # Email parameters
    to_address: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    from_address: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(500), nullable=False)

    # Email bodies (stored for debugging/audit)
    html_body: Mapped[str | None] = mapped_column(Text, nullable=True)
    text_body: Mapped[str | None] = mapped_column(Text, nullable=True)

    email_type: Mapped[str] = mapped_column(
        Enum("reminder", name="email_type_enum"),
        nullable=False,
        index=True,
    )

    # Context
    user_id: Mapped[UUID | None] = mapped_column(
        ForeignKey(f"{TableNames.USERS.value}.uuid", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    event_id: Mapped[UUID | None] = mapped_column(
        ForeignKey(f"{TableNames.EVENTS.value}.uuid", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    status: Mapped[str] = mapped_column(
        Enum("pending", "sent", "failed", name="email_status_enum"),
        default="pending",
        nullable=False,
        index=True,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<EmailLog {self.provider_message_id} to={self.to_address} status={self.status}>"
