from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Protocol

from sqlalchemy import Select, select
from sqlalchemy.orm import Session

from eventflow.core.clock import utcnow
from eventflow.core.exceptions import DateConflictError
from eventflow.models.activity import Activity, Schedule, teaching_activity
from eventflow.models.event import Event
from eventflow.models.registry import ActivityRegistry
from eventflow.schemas.conflict import ConflictData, ScheduleConflictReport
from eventflow.services.naming import render_event_name
from eventflow.services.overlap import overlaps, schedule_end

CURRENT_EVENT_NAME = "Current event"

SELF_CONFLICT_MESSAGE = "Conflict within the activity's own schedules"
TEACHER_CONFLICT_MESSAGE = "Conflict with a teaching user's schedule"
ROOM_CONFLICT_MESSAGE = "Conflict with other activities"
REGISTRATION_CONFLICT_MESSAGE = "Conflicting registration"


class ScheduleLike(Protocol):
    start_date: datetime
    duration_in_minutes: int
    room_id: str | None


class ScheduleConflictService:
    """Finds time overlaps between candidate schedules and stored ones.

    Only schedules of events whose end date is after ``now`` take part; finished
    events never conflict. SQL narrows the candidates to schedules starting before
    the candidate ends, and :func:`overlaps` decides, with the candidate as the
    first interval.
    """

    def __init__(self, db: Session, *, now: datetime | None = None):
        self.db = db
        self.now = now or utcnow()

    def _active_schedules(self, candidate: ScheduleLike, exclude_activity_id: str | None) -> Select:
        query = (
            select(Schedule)
            .join(Activity, Schedule.activity_id == Activity.id)
            .join(Event, Activity.event_id == Event.id)
            .where(
                Event.end_date > self.now,
                Schedule.start_date < schedule_end(candidate.start_date, candidate.duration_in_minutes),
            )
            .order_by(Schedule.start_date)
        )
        if exclude_activity_id is not None:
            query = query.where(Activity.id != exclude_activity_id)
        return query

    def _first_overlapping(self, candidate: ScheduleLike, query: Select) -> Schedule | None:
        for other in self.db.execute(query).scalars():
            if overlaps(
                candidate.start_date,
                candidate.duration_in_minutes,
                other.start_date,
                other.duration_in_minutes,
            ):
                return other
        return None

    @staticmethod
    def _conflict_with(other: Schedule, index: int, *, with_room: bool = False) -> ConflictData:
        activity = other.activity
        return ConflictData(
            activityName=activity.title,
            eventName=render_event_name(activity.event),
            roomName=other.room.code if with_room and other.room is not None else None,
            index=index,
        )

    def find_self_conflicts(self, title: str, schedules: Sequence[ScheduleLike]) -> list[ConflictData]:
        conflicts: list[ConflictData] = []
        for index, schedule in enumerate(schedules):
            for other_index, other in enumerate(schedules):
                if other_index == index:
                    continue
                if overlaps(
                    schedule.start_date,
                    schedule.duration_in_minutes,
                    other.start_date,
                    other.duration_in_minutes,
                ):
                    conflicts.append(
                        ConflictData(activityName=title, eventName=CURRENT_EVENT_NAME, index=index)
                    )
                    break
        return conflicts

    def find_teacher_conflicts(
        self,
        schedules: Sequence[ScheduleLike],
        teaching_user_ids: Iterable[str],
        *,
        exclude_activity_id: str | None = None,
    ) -> list[ConflictData]:
        teacher_ids = list(dict.fromkeys(teaching_user_ids))
        conflicts: list[ConflictData] = []
        for index, schedule in enumerate(schedules):
            for teacher_id in teacher_ids:
                query = self._active_schedules(schedule, exclude_activity_id).join(
                    teaching_activity,
                    teaching_activity.c.activity_id == Activity.id,
                ).where(teaching_activity.c.user_id == teacher_id)
                other = self._first_overlapping(schedule, query)
                if other is not None:
                    conflicts.append(self._conflict_with(other, index))
        return conflicts

    def find_room_conflicts(
        self,
        schedules: Sequence[ScheduleLike],
        *,
        exclude_activity_id: str | None = None,
    ) -> list[ConflictData]:
        conflicts: list[ConflictData] = []
        for index, schedule in enumerate(schedules):
            if schedule.room_id is None:
                continue
            query = self._active_schedules(schedule, exclude_activity_id).where(
                Schedule.room_id == schedule.room_id
            )
            other = self._first_overlapping(schedule, query)
            if other is not None:
                conflicts.append(self._conflict_with(other, index, with_room=True))
        return conflicts

    def find_registration_conflicts(
        self,
        user_id: str,
        schedules: Sequence[ScheduleLike],
        *,
        exclude_activity_id: str | None = None,
    ) -> list[ConflictData]:
        conflicts: list[ConflictData] = []
        for index, schedule in enumerate(schedules):
            query = self._active_schedules(schedule, exclude_activity_id).join(
                ActivityRegistry,
                ActivityRegistry.activity_id == Activity.id,
            ).where(ActivityRegistry.user_id == user_id)
            other = self._first_overlapping(schedule, query)
            if other is not None:
                conflicts.append(self._conflict_with(other, index))
        return conflicts

    def detect(
        self,
        *,
        title: str,
        schedules: Sequence[ScheduleLike],
        teaching_user_ids: Iterable[str] = (),
        activity_id: str | None = None,
    ) -> ScheduleConflictReport:
        return ScheduleConflictReport(
            self_conflicts=self.find_self_conflicts(title, schedules),
            teacher_conflicts=self.find_teacher_conflicts(
                schedules,
                teaching_user_ids,
                exclude_activity_id=activity_id,
            ),
            room_conflicts=self.find_room_conflicts(schedules, exclude_activity_id=activity_id),
        )

    def ensure_activity_schedules_available(
        self,
        *,
        title: str,
        schedules: Sequence[ScheduleLike],
        teaching_user_ids: Iterable[str] = (),
        activity_id: str | None = None,
    ) -> None:
        """Raise a :class:`DateConflictError` for the first pass that finds conflicts.

        Passes run in order: own schedules, teaching users, rooms.
        """
        self_conflicts = self.find_self_conflicts(title, schedules)
        if self_conflicts:
            raise DateConflictError(SELF_CONFLICT_MESSAGE, self_conflicts)

        teacher_conflicts = self.find_teacher_conflicts(
            schedules,
            teaching_user_ids,
            exclude_activity_id=activity_id,
        )
        if teacher_conflicts:
            raise DateConflictError(TEACHER_CONFLICT_MESSAGE, teacher_conflicts)

        room_conflicts = self.find_room_conflicts(schedules, exclude_activity_id=activity_id)
        if room_conflicts:
            raise DateConflictError(ROOM_CONFLICT_MESSAGE, room_conflicts)

    def ensure_registration_available(
        self,
        user_id: str,
        schedules: Sequence[ScheduleLike],
        *,
        activity_id: str | None = None,
    ) -> None:
        conflicts = self.find_registration_conflicts(user_id, schedules, exclude_activity_id=activity_id)
        if conflicts:
            raise DateConflictError(REGISTRATION_CONFLICT_MESSAGE, conflicts)
