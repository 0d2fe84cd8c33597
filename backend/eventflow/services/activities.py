from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from eventflow.core.clock import utcnow
from eventflow.core.exceptions import (
    ActivityDeleteHasRegistryError,
    ActivityDeleteIsHappeningError,
    EventChangeRestrictionError,
    IncompleteActivityError,
    ResourceNotFoundError,
    ResponsibleUsersRequiredError,
    SchedulesRequiredError,
)
from eventflow.db.locks import exclusive_lock
from eventflow.db.transaction import atomic
from eventflow.models.activity import Activity, Schedule
from eventflow.models.category import ActivityCategory
from eventflow.models.event import Event
from eventflow.models.room import Room
from eventflow.schemas.activity import ActivityCreate, ActivityUpdate, ScheduleIn
from eventflow.services.audit import log_activity
from eventflow.services.category_index import close_gap, index_lock_key, next_index
from eventflow.services.conflict_service import ScheduleConflictService
from eventflow.services.users import find_active_users

logger = logging.getLogger(__name__)


def get_activity(db: Session, activity_id: str) -> Activity:
    activity = db.get(Activity, activity_id)
    if activity is None:
        raise ResourceNotFoundError("Activity", activity_id)
    return activity


def get_event(db: Session, event_id: str) -> Event:
    event = db.get(Event, event_id)
    if event is None:
        raise ResourceNotFoundError("Event", event_id)
    return event


def _ensure_category_exists(db: Session, category_id: str) -> None:
    if db.get(ActivityCategory, category_id) is None:
        raise ResourceNotFoundError("Activity category", category_id)


def _ensure_rooms_exist(db: Session, schedules: Sequence[ScheduleIn]) -> None:
    room_ids = {schedule.room_id for schedule in schedules if schedule.room_id is not None}
    if not room_ids:
        return
    found = set(db.execute(select(Room.id).where(Room.id.in_(room_ids))).scalars())
    missing = sorted(room_ids - found)
    if missing:
        raise ResourceNotFoundError("Room", missing[0])


def schedules_time_differs(old_schedules: Sequence[Schedule], new_schedules: Sequence[ScheduleIn]) -> bool:
    """True when the new list changes the count or the timing of any existing schedule.

    New schedules are matched to old ones by id; an old schedule without a match
    counts as a change.
    """
    if len(old_schedules) != len(new_schedules):
        return True
    incoming = {schedule.id: schedule for schedule in new_schedules if schedule.id is not None}
    for old in old_schedules:
        new = incoming.get(old.id)
        if new is None:
            return True
        if new.duration_in_minutes != old.duration_in_minutes or new.start_date != old.start_date:
            return True
    return False


def _merge_schedules(current: Sequence[Schedule], incoming: Sequence[ScheduleIn]) -> list[Schedule]:
    existing = {schedule.id: schedule for schedule in current}
    merged: list[Schedule] = []
    for item in incoming:
        schedule = existing.get(item.id) if item.id is not None else None
        if schedule is None:
            schedule = Schedule()
        schedule.start_date = item.start_date
        schedule.duration_in_minutes = item.duration_in_minutes
        schedule.room_id = item.room_id
        schedule.url = item.url
        merged.append(schedule)
    return merged


def create_activity(
    db: Session,
    payload: ActivityCreate,
    *,
    actor_id: str | None = None,
    now: datetime | None = None,
) -> Activity:
    if not payload.schedules:
        raise SchedulesRequiredError()
    if not payload.responsible_user_ids:
        raise ResponsibleUsersRequiredError()

    event = get_event(db, payload.event_id)
    _ensure_category_exists(db, payload.activity_category_id)

    with exclusive_lock(db, index_lock_key(event.id, payload.activity_category_id)), atomic(db):
        responsible_users = find_active_users(db, payload.responsible_user_ids)
        teaching_users = find_active_users(db, payload.teaching_user_ids)
        _ensure_rooms_exist(db, payload.schedules)

        index = next_index(db, event.id, payload.activity_category_id)

        ScheduleConflictService(db, now=now).ensure_activity_schedules_available(
            title=payload.title,
            schedules=payload.schedules,
            teaching_user_ids=[user.id for user in teaching_users],
        )

        activity = Activity(
            title=payload.title,
            description=payload.description,
            vacancy=payload.vacancy,
            workload_in_minutes=payload.workload_in_minutes,
            event_id=event.id,
            activity_category_id=payload.activity_category_id,
            index_in_category=index,
            ready_for_certificate_emission=False,
            schedules=_merge_schedules([], payload.schedules),
            responsible_users=responsible_users,
            teaching_users=teaching_users,
        )
        db.add(activity)
        db.flush()
        log_activity(
            db,
            actor_id=actor_id,
            action="activity.created",
            entity_type="activity",
            entity_id=activity.id,
            details={"event_id": event.id, "index_in_category": index},
        )

    db.refresh(activity)
    logger.info(
        "Created activity %s in event %s with index %d",
        activity.id,
        activity.event_id,
        activity.index_in_category,
    )
    return activity


def edit_activity(
    db: Session,
    activity_id: str,
    payload: ActivityUpdate,
    *,
    actor_id: str | None = None,
    now: datetime | None = None,
) -> Activity:
    now = now or utcnow()
    activity = get_activity(db, activity_id)

    if payload.event_id is not None and payload.event_id != activity.event_id:
        raise EventChangeRestrictionError()
    if payload.schedules is not None and len(payload.schedules) == 0:
        raise SchedulesRequiredError()
    if payload.responsible_user_ids is not None and len(payload.responsible_user_ids) == 0:
        raise ResponsibleUsersRequiredError()
    if payload.activity_category_id is not None:
        _ensure_category_exists(db, payload.activity_category_id)

    event_id = activity.event_id
    while True:
        old_category_id = activity.activity_category_id
        category_changes = (
            payload.activity_category_id is not None and payload.activity_category_id != old_category_id
        )
        lock_keys = [index_lock_key(event_id, old_category_id)]
        if category_changes:
            lock_keys.append(index_lock_key(event_id, payload.activity_category_id))

        with exclusive_lock(db, *lock_keys), atomic(db):
            db.refresh(activity)
            if activity.activity_category_id != old_category_id:
                # Moved by a concurrent edit before the lock was taken.
                continue
            old_index = activity.index_in_category

            if not activity.ready_for_certificate_emission and payload.ready_for_certificate_emission:
                if not all(schedule.start_date < now for schedule in activity.schedules):
                    raise IncompleteActivityError()
                activity.ready_for_certificate_emission = True

            if category_changes:
                new_index = next_index(db, event_id, payload.activity_category_id)
                close_gap(db, event_id, old_category_id, old_index, exclude_activity_id=activity.id)
                activity.activity_category_id = payload.activity_category_id
                activity.index_in_category = new_index

            if payload.responsible_user_ids is not None:
                activity.responsible_users = find_active_users(db, payload.responsible_user_ids)
            if payload.teaching_user_ids is not None:
                activity.teaching_users = find_active_users(db, payload.teaching_user_ids)

            if payload.schedules is not None or payload.teaching_user_ids is not None:
                schedules = activity.schedules
                if payload.schedules is not None:
                    _ensure_rooms_exist(db, payload.schedules)
                    schedules = payload.schedules
                ScheduleConflictService(db, now=now).ensure_activity_schedules_available(
                    title=payload.title or activity.title,
                    schedules=schedules,
                    teaching_user_ids=[user.id for user in activity.teaching_users],
                    activity_id=activity.id,
                )

            wiped_registrations = 0
            if payload.schedules is not None:
                if schedules_time_differs(activity.schedules, payload.schedules):
                    wiped_registrations = len(activity.registrations)
                    activity.registrations.clear()
                activity.schedules = _merge_schedules(activity.schedules, payload.schedules)

            for field in ("title", "description", "vacancy", "workload_in_minutes"):
                value = getattr(payload, field)
                if value is not None:
                    setattr(activity, field, value)

            log_activity(
                db,
                actor_id=actor_id,
                action="activity.updated",
                entity_type="activity",
                entity_id=activity.id,
                details={
                    "index_in_category": activity.index_in_category,
                    "category_changed": category_changes,
                    "registrations_removed": wiped_registrations,
                },
            )
        break

    db.refresh(activity)
    logger.info("Updated activity %s (index %d)", activity.id, activity.index_in_category)
    return activity


def delete_activity(
    db: Session,
    activity_id: str,
    *,
    actor_id: str | None = None,
    now: datetime | None = None,
) -> None:
    now = now or utcnow()
    activity = get_activity(db, activity_id)
    event_id = activity.event_id

    while True:
        category_id = activity.activity_category_id
        with exclusive_lock(db, index_lock_key(event_id, category_id)), atomic(db):
            db.refresh(activity)
            if activity.activity_category_id != category_id:
                continue
            if activity.registrations:
                raise ActivityDeleteHasRegistryError()

            event = activity.event
            if event.status_visible and event.start_date < now < event.end_date:
                raise ActivityDeleteIsHappeningError()

            removed_index = activity.index_in_category
            shifted = close_gap(db, event_id, category_id, removed_index, exclude_activity_id=activity.id)
            db.delete(activity)
            log_activity(
                db,
                actor_id=actor_id,
                action="activity.deleted",
                entity_type="activity",
                entity_id=activity_id,
                details={"index_in_category": removed_index, "shifted": shifted},
            )
        break

    logger.info("Deleted activity %s, shifted %d sibling(s)", activity_id, shifted)
