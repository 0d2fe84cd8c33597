import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    event as sa_event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventflow.core.exceptions import EndDateBeforeStartDateError, RegistryEndDateBeforeStartDateError
from eventflow.db.base import Base
from eventflow.models.category import EventArea, EventCategory
from eventflow.models.user import User


class NameDisplay(str, Enum):
    show_all = "show_all"
    show_edition_only = "show_edition_only"
    show_year_only = "show_year_only"
    show_none = "show_none"


class EditionDisplay(str, Enum):
    arabic = "arabic"
    ordinal = "ordinal"
    roman = "roman"


organizer_event = Table(
    "organizer_event",
    Base.metadata,
    Column("event_id", String(36), ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    edition: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    registry_start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    registry_end_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    status_visible: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    status_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    display: Mapped[NameDisplay] = mapped_column(
        SAEnum(NameDisplay, name="name_display"),
        nullable=False,
        default=NameDisplay.show_all,
    )
    edition_display: Mapped[EditionDisplay] = mapped_column(
        SAEnum(EditionDisplay, name="edition_display"),
        nullable=False,
        default=EditionDisplay.arabic,
    )
    event_category_id: Mapped[str] = mapped_column(String(36), ForeignKey("event_categories.id"), nullable=False)
    event_area_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("event_areas.id"), nullable=True)

    event_category: Mapped[EventCategory] = relationship(lazy="joined")
    event_area: Mapped[EventArea | None] = relationship()
    responsible_users: Mapped[list[User]] = relationship(secondary=organizer_event)


def _end_of_day(value: datetime) -> datetime:
    return value.replace(hour=23, minute=59, second=59, microsecond=999999)


@sa_event.listens_for(Event, "before_insert")
@sa_event.listens_for(Event, "before_update")
def validate_event_dates(mapper, connection, target: Event) -> None:
    target.end_date = _end_of_day(target.end_date)
    target.registry_end_date = _end_of_day(target.registry_end_date)
    if target.end_date < target.start_date:
        raise EndDateBeforeStartDateError()
    if target.registry_end_date < target.registry_start_date:
        raise RegistryEndDateBeforeStartDateError()
