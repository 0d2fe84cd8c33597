from __future__ import annotations

from datetime import datetime
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from eventflow.core.clock import utcnow
from eventflow.core.exceptions import (
    AlreadyRegisteredError,
    ArchivedEventError,
    InvisibleEventError,
    OutsideRegistryWindowError,
    ResourceNotFoundError,
    ResponsibleRegistryError,
)
from eventflow.db.locks import exclusive_lock
from eventflow.db.transaction import atomic
from eventflow.models.registry import ActivityRegistry, Presence
from eventflow.services.activities import get_activity
from eventflow.services.audit import log_activity
from eventflow.services.conflict_service import ScheduleConflictService
from eventflow.services.users import get_user

logger = logging.getLogger(__name__)


def registry_lock_key(user_id: str) -> str:
    return f"user-registry:{user_id}"


def _find_registry(db: Session, activity_id: str, user_id: str) -> ActivityRegistry | None:
    return db.execute(
        select(ActivityRegistry).where(
            ActivityRegistry.activity_id == activity_id,
            ActivityRegistry.user_id == user_id,
        )
    ).scalar_one_or_none()


def get_registration(db: Session, activity_id: str, user_id: str) -> ActivityRegistry:
    registry = _find_registry(db, activity_id, user_id)
    if registry is None:
        raise ResourceNotFoundError("Registry")
    return registry


def _register(
    db: Session,
    activity_id: str,
    user_id: str,
    *,
    as_responsible: bool,
    actor_id: str | None,
    now: datetime | None,
) -> ActivityRegistry:
    now = now or utcnow()

    with exclusive_lock(db, registry_lock_key(user_id)), atomic(db):
        activity = get_activity(db, activity_id)
        event = activity.event

        if not as_responsible and (now < event.registry_start_date or now > event.registry_end_date):
            raise OutsideRegistryWindowError()
        if not event.status_visible:
            raise InvisibleEventError()
        if not as_responsible and any(user.id == user_id for user in activity.responsible_users):
            raise ResponsibleRegistryError()

        user = get_user(db, user_id)
        if _find_registry(db, activity.id, user.id) is not None:
            raise AlreadyRegisteredError()

        ScheduleConflictService(db, now=now).ensure_registration_available(
            user.id,
            activity.schedules,
            activity_id=activity.id,
        )

        registry = ActivityRegistry(
            user_id=user.id,
            activity_id=activity.id,
            registry_date=now,
            presences=[Presence(schedule_id=schedule.id) for schedule in activity.schedules],
        )
        db.add(registry)
        db.flush()
        log_activity(
            db,
            actor_id=actor_id or user.id,
            action="registry.created",
            entity_type="activity_registry",
            entity_id=registry.id,
            details={"activity_id": activity.id, "user_id": user.id, "as_responsible": as_responsible},
        )

    db.refresh(registry)
    logger.info("Registered user %s in activity %s", user_id, activity_id)
    return registry


def register(
    db: Session,
    activity_id: str,
    user_id: str,
    *,
    actor_id: str | None = None,
    now: datetime | None = None,
) -> ActivityRegistry:
    return _register(db, activity_id, user_id, as_responsible=False, actor_id=actor_id, now=now)


def responsible_register(
    db: Session,
    activity_id: str,
    user_id: str,
    *,
    actor_id: str | None = None,
    now: datetime | None = None,
) -> ActivityRegistry:
    """Register a user on an organizer's behalf, ignoring the registry window and responsibility."""
    return _register(db, activity_id, user_id, as_responsible=True, actor_id=actor_id, now=now)


def delete_registration(
    db: Session,
    activity_id: str,
    user_id: str,
    *,
    actor_id: str | None = None,
    now: datetime | None = None,
) -> None:
    now = now or utcnow()

    with exclusive_lock(db, registry_lock_key(user_id)), atomic(db):
        event = get_activity(db, activity_id).event
        if event.end_date <= now:
            raise ArchivedEventError()
        if not event.status_visible:
            raise InvisibleEventError("Registrations cannot be removed from an event that is not visible")

        registry = get_registration(db, activity_id, user_id)
        registry_id = registry.id
        db.delete(registry)
        log_activity(
            db,
            actor_id=actor_id or user_id,
            action="registry.deleted",
            entity_type="activity_registry",
            entity_id=registry_id,
            details={"activity_id": activity_id, "user_id": user_id},
        )

    logger.info("Removed registration of user %s from activity %s", user_id, activity_id)


def set_rating(db: Session, activity_id: str, user_id: str, rating: int) -> ActivityRegistry:
    with atomic(db):
        registry = get_registration(db, activity_id, user_id)
        registry.rating = rating
    db.refresh(registry)
    return registry
