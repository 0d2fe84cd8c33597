from datetime import timedelta

import pytest
from sqlalchemy import func, select

from eventflow.core.exceptions import (
    AlreadyRegisteredError,
    ArchivedEventError,
    DateConflictError,
    InvisibleEventError,
    OutsideRegistryWindowError,
    ResourceNotFoundError,
    ResponsibleRegistryError,
)
from eventflow.db import locks
from eventflow.models.registry import ActivityRegistry, Presence
from eventflow.services import registrations as registry_service
from eventflow.services.conflict_service import REGISTRATION_CONFLICT_MESSAGE
from eventflow.services.registrations import (
    delete_registration,
    get_registration,
    register,
    registry_lock_key,
    responsible_register,
    set_rating,
)


@pytest.fixture
def event(factory):
    return factory.event()


@pytest.fixture
def activity(factory, event):
    start = event.start_date + timedelta(hours=9)
    return factory.activity(
        event,
        schedules=[factory.schedule(start, 60), factory.schedule(start + timedelta(days=1), 60)],
    )


def test_register_creates_one_presence_per_schedule(db, factory, activity):
    user = factory.user()

    registry = register(db, activity.id, user.id)

    assert registry.user_id == user.id
    assert registry.ready_for_certificate is True
    assert registry.rating == 0
    assert sorted(p.schedule_id for p in registry.presences) == sorted(s.id for s in activity.schedules)
    assert all(p.is_present for p in registry.presences)


def test_duplicate_registration_is_rejected(db, factory, activity):
    user = factory.user()
    register(db, activity.id, user.id)

    with pytest.raises(AlreadyRegisteredError):
        register(db, activity.id, user.id)

    count = db.execute(select(func.count(ActivityRegistry.id))).scalar_one()
    assert count == 1


def test_user_can_register_again_after_leaving(db, factory, activity):
    user = factory.user()
    register(db, activity.id, user.id)

    delete_registration(db, activity.id, user.id)
    assert db.execute(select(func.count(Presence.id))).scalar_one() == 0

    registry = register(db, activity.id, user.id)
    assert registry.activity_id == activity.id


def test_unknown_activity_and_user(db, factory, activity):
    with pytest.raises(ResourceNotFoundError):
        register(db, "missing", factory.user().id)
    with pytest.raises(ResourceNotFoundError):
        register(db, activity.id, "missing")


def test_registry_window_boundaries(db, factory, event, activity):
    user = factory.user()

    with pytest.raises(OutsideRegistryWindowError):
        register(db, activity.id, user.id, now=event.registry_start_date - timedelta(seconds=1))
    with pytest.raises(OutsideRegistryWindowError):
        register(db, activity.id, user.id, now=event.registry_end_date + timedelta(seconds=1))

    registry = register(db, activity.id, user.id, now=event.registry_end_date - timedelta(seconds=1))
    assert registry.registry_date == event.registry_end_date - timedelta(seconds=1)


def test_responsible_user_cannot_register(db, factory, event):
    organizer = factory.user()
    activity = factory.activity(event, responsible=[organizer])

    with pytest.raises(ResponsibleRegistryError):
        register(db, activity.id, organizer.id)

    registry = responsible_register(db, activity.id, organizer.id)
    assert registry.user_id == organizer.id


def test_responsible_register_ignores_the_window(db, factory, event, activity):
    user = factory.user()

    registry = responsible_register(db, activity.id, user.id, now=event.registry_end_date + timedelta(days=1))

    assert registry.user_id == user.id


def test_invisible_event_blocks_registration(db, factory):
    hidden = factory.event(visible=False)
    activity = factory.activity(hidden)

    with pytest.raises(InvisibleEventError):
        register(db, activity.id, factory.user().id)
    with pytest.raises(InvisibleEventError):
        responsible_register(db, activity.id, factory.user().id)


def test_registration_conflicts_with_the_users_other_activities(db, factory, event, activity):
    user = factory.user()
    register(db, activity.id, user.id)
    clash = factory.activity(
        event,
        schedules=[factory.schedule(activity.schedules[0].start_date + timedelta(minutes=30), 60)],
        title="Clash",
    )

    with pytest.raises(DateConflictError) as exc_info:
        register(db, clash.id, user.id)

    assert exc_info.value.message == REGISTRATION_CONFLICT_MESSAGE
    assert exc_info.value.data[0].activityName == activity.title
    assert exc_info.value.data[0].index == 0


def test_other_users_registrations_do_not_conflict(db, factory, event, activity):
    register(db, activity.id, factory.user().id)
    clash = factory.activity(event, schedules=[factory.schedule(activity.schedules[0].start_date, 60)])

    registry = register(db, clash.id, factory.user().id)

    assert registry.activity_id == clash.id


def test_delete_rules(db, factory, event, activity):
    user = factory.user()
    register(db, activity.id, user.id)

    with pytest.raises(ArchivedEventError):
        delete_registration(db, activity.id, user.id, now=event.end_date)
    with pytest.raises(ResourceNotFoundError):
        delete_registration(db, activity.id, factory.user().id)

    event.status_visible = False
    db.commit()
    with pytest.raises(InvisibleEventError):
        delete_registration(db, activity.id, user.id)


def test_rating(db, factory, activity):
    user = factory.user()
    register(db, activity.id, user.id)

    registry = set_rating(db, activity.id, user.id, 4)

    assert registry.rating == 4
    assert get_registration(db, activity.id, user.id).rating == 4


def test_registration_rules_are_checked_under_the_user_lock(db, factory, activity, monkeypatch):
    user = factory.user()
    held = []
    real_get_activity = registry_service.get_activity

    def tracking_get_activity(session, activity_id):
        held.append(locks._local_locks.get(registry_lock_key(user.id)).locked())
        return real_get_activity(session, activity_id)

    monkeypatch.setattr(registry_service, "get_activity", tracking_get_activity)

    register(db, activity.id, user.id)
    delete_registration(db, activity.id, user.id)

    assert held == [True, True]
