from datetime import timedelta

import pytest

from eventflow.core.exceptions import ResourceNotFoundError
from eventflow.services.presences import mark_absent, mark_present
from eventflow.services.registrations import get_registration, register


def test_presence_marks_toggle_certificate_readiness(db, factory):
    event = factory.event()
    start = event.start_date + timedelta(hours=9)
    activity = factory.activity(
        event,
        schedules=[factory.schedule(start, 60), factory.schedule(start + timedelta(days=1), 60)],
    )
    user = factory.user()
    register(db, activity.id, user.id)
    first, second = (schedule.id for schedule in activity.schedules)

    mark_absent(db, user.id, first)
    mark_absent(db, user.id, second)
    assert get_registration(db, activity.id, user.id).ready_for_certificate is False

    presence = mark_present(db, user.id, first)
    assert presence.is_present is True
    assert get_registration(db, activity.id, user.id).ready_for_certificate is False

    mark_present(db, user.id, second)
    assert get_registration(db, activity.id, user.id).ready_for_certificate is True


def test_unknown_presence_is_not_found(db, factory):
    event = factory.event()
    activity = factory.activity(event)

    with pytest.raises(ResourceNotFoundError):
        mark_present(db, factory.user().id, activity.schedules[0].id)


def test_presence_belongs_to_the_users_registry(db, factory):
    event = factory.event()
    activity = factory.activity(event)
    user = factory.user()
    registry = register(db, activity.id, user.id)

    presence = mark_absent(db, user.id, activity.schedules[0].id)

    assert presence.activity_registry.id == registry.id
    assert presence.activity_registry.ready_for_certificate is False
