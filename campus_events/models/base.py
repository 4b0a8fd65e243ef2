from datetime import datetime
from uuid import UUID, uuid4

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, declarative_base, mapped_column
from sqlalchemy_utils import UUIDType

from campus_events.utils.timezone import utcnow

BaseModel = declarative_base(type_annotation_map={UUID: UUIDType})


class Base(BaseModel):
    __abstract__ = True

    uuid: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TimeStamp(BaseModel):
    """Created / updated timestamps.

    Set from Python on insert and update so the values stay loaded after a
    flush; an expired server-side value would need a lazy load, which async
    sessions cannot do implicitly.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=utcnow,
        server_default=sa.func.current_timestamp(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=sa.func.current_timestamp(),
        nullable=False,
    )
