from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from eventflow.core.exceptions import ResourceNotFoundError
from eventflow.db.transaction import atomic
from eventflow.models.registry import ActivityRegistry, Presence
from eventflow.services.audit import log_activity


def find_presence(db: Session, user_id: str, schedule_id: str) -> Presence:
    presence = db.execute(
        select(Presence)
        .join(ActivityRegistry, Presence.registry_id == ActivityRegistry.id)
        .where(
            ActivityRegistry.user_id == user_id,
            Presence.schedule_id == schedule_id,
        )
    ).scalar_one_or_none()
    if presence is None:
        raise ResourceNotFoundError("Presence")
    return presence


def mark_present(db: Session, user_id: str, schedule_id: str, *, actor_id: str | None = None) -> Presence:
    """Mark attendance; the registry becomes certificate-ready once every schedule is attended."""
    with atomic(db):
        presence = find_presence(db, user_id, schedule_id)
        presence.is_present = True
        registry = presence.activity_registry
        if all(item.is_present for item in registry.presences):
            registry.ready_for_certificate = True
        log_activity(
            db,
            actor_id=actor_id,
            action="presence.marked_present",
            entity_type="presence",
            entity_id=presence.id,
            details={"user_id": user_id, "schedule_id": schedule_id},
        )
    db.refresh(presence)
    return presence


def mark_absent(db: Session, user_id: str, schedule_id: str, *, actor_id: str | None = None) -> Presence:
    with atomic(db):
        presence = find_presence(db, user_id, schedule_id)
        presence.is_present = False
        presence.activity_registry.ready_for_certificate = False
        log_activity(
            db,
            actor_id=actor_id,
            action="presence.marked_absent",
            entity_type="presence",
            entity_id=presence.id,
            details={"user_id": user_id, "schedule_id": schedule_id},
        )
    db.refresh(presence)
    return presence
