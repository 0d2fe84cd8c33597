from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventflow.core.clock import utcnow
from eventflow.db.base import Base
from eventflow.models.activity import Activity, Schedule
from eventflow.models.user import User


class ActivityRegistry(Base):
    __tablename__ = "activity_registries"
    __table_args__ = (UniqueConstraint("user_id", "activity_id", name="uq_activity_registries_user_activity"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    registry_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    ready_for_certificate: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    rating: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_id: Mapped[str] = mapped_column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    activity_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("activities.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user: Mapped[User] = relationship()
    activity: Mapped[Activity] = relationship(back_populates="registrations")
    presences: Mapped[list[Presence]] = relationship(
        back_populates="activity_registry",
        cascade="all, delete-orphan",
    )


class Presence(Base):
    __tablename__ = "presences"
    __table_args__ = (UniqueConstraint("registry_id", "schedule_id", name="uq_presences_registry_schedule"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    is_present: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    registry_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("activity_registries.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    schedule_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    activity_registry: Mapped[ActivityRegistry] = relationship(back_populates="presences")
    schedule: Mapped[Schedule] = relationship(back_populates="presences")
