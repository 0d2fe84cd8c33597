from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    event as sa_event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventflow.core.exceptions import InvalidScheduleError
from eventflow.db.base import Base
from eventflow.models.category import ActivityCategory
from eventflow.models.event import Event
from eventflow.models.room import Room
from eventflow.models.user import User

if TYPE_CHECKING:
    from eventflow.models.registry import ActivityRegistry, Presence


responsible_activity = Table(
    "responsible_activity",
    Base.metadata,
    Column("activity_id", String(36), ForeignKey("activities.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

teaching_activity = Table(
    "teaching_activity",
    Base.metadata,
    Column("activity_id", String(36), ForeignKey("activities.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        CheckConstraint("vacancy > 0", name="ck_activities_vacancy_positive"),
        CheckConstraint("workload_in_minutes > 0", name="ck_activities_workload_positive"),
        Index("ix_activities_event_category", "event_id", "activity_category_id", "index_in_category"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    vacancy: Mapped[int] = mapped_column(Integer, nullable=False)
    workload_in_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    ready_for_certificate_emission: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    index_in_category: Mapped[int] = mapped_column(Integer, nullable=False)

    event_id: Mapped[str] = mapped_column(String(36), ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    activity_category_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("activity_categories.id"),
        nullable=False,
    )

    event: Mapped[Event] = relationship(lazy="joined")
    activity_category: Mapped[ActivityCategory] = relationship()
    schedules: Mapped[list[Schedule]] = relationship(
        back_populates="activity",
        cascade="all, delete-orphan",
        order_by="Schedule.start_date",
    )
    responsible_users: Mapped[list[User]] = relationship(secondary=responsible_activity)
    teaching_users: Mapped[list[User]] = relationship(secondary=teaching_activity)
    registrations: Mapped[list[ActivityRegistry]] = relationship(
        back_populates="activity",
        cascade="all, delete-orphan",
    )


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (CheckConstraint("duration_in_minutes > 0", name="ck_schedules_duration_positive"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    duration_in_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    url: Mapped[str | None] = mapped_column(String(300), nullable=True)
    room_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("rooms.id"), nullable=True, index=True)
    activity_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("activities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    activity: Mapped[Activity] = relationship(back_populates="schedules")
    room: Mapped[Room | None] = relationship(lazy="joined")
    presences: Mapped[list[Presence]] = relationship(
        back_populates="schedule",
        cascade="all, delete-orphan",
    )


@sa_event.listens_for(Schedule, "before_insert")
@sa_event.listens_for(Schedule, "before_update")
def validate_schedule_location(mapper, connection, target: Schedule) -> None:
    if target.url is not None and not target.url.strip():
        target.url = None
    has_room = target.room_id is not None
    has_url = target.url is not None
    if has_room == has_url:
        raise InvalidScheduleError()
