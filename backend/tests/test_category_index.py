from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from datetime import timedelta
import threading

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker

from conftest import Factory
from eventflow.db.base import Base
from eventflow.models.activity import Activity
from eventflow.schemas.activity import ActivityCreate, ActivityUpdate, ScheduleIn
from eventflow.services import activities as activity_service
from eventflow.services.activities import create_activity, delete_activity, edit_activity
from eventflow.services.category_index import close_gap, index_lock_key, next_index


@pytest.fixture
def file_session_factory(tmp_path):
    engine = create_engine(
        f"sqlite+pysqlite:///{tmp_path / 'index.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def _indices(db, event_id, category_id):
    return list(
        db.execute(
            select(Activity.index_in_category)
            .where(Activity.event_id == event_id, Activity.activity_category_id == category_id)
            .order_by(Activity.index_in_category)
        ).scalars()
    )


def test_index_lock_key_is_scoped_to_the_pair():
    assert index_lock_key("e1", "c1") == "activity-index:e1:c1"
    assert index_lock_key("e1", "c1") != index_lock_key("e1", "c2")


def test_indices_are_assigned_in_creation_order(db, factory):
    event = factory.event()
    category = factory.activity_category()

    created = [factory.activity(event, category=category) for _ in range(3)]

    assert [activity.index_in_category for activity in created] == [1, 2, 3]
    assert next_index(db, event.id, category.id) == 4


def test_categories_and_events_count_separately(db, factory):
    event = factory.event()
    other_event = factory.event()
    talks = factory.activity_category("Palestra")
    courses = factory.activity_category("Minicurso")

    assert factory.activity(event, category=talks).index_in_category == 1
    assert factory.activity(event, category=courses).index_in_category == 1
    assert factory.activity(other_event, category=talks).index_in_category == 1
    assert factory.activity(event, category=talks).index_in_category == 2


def test_delete_closes_the_gap(db, factory):
    event = factory.event()
    category = factory.activity_category()
    first, second, third = (factory.activity(event, category=category) for _ in range(3))

    delete_activity(db, second.id)

    db.expire_all()
    assert _indices(db, event.id, category.id) == [1, 2]
    assert db.get(Activity, first.id).index_in_category == 1
    assert db.get(Activity, third.id).index_in_category == 2


def test_close_gap_only_touches_higher_indices(db, factory):
    event = factory.event()
    category = factory.activity_category()
    for _ in range(4):
        factory.activity(event, category=category)

    shifted = close_gap(db, event.id, category.id, 2)
    db.commit()

    assert shifted == 2
    assert _indices(db, event.id, category.id) == [1, 2, 2, 3]


def test_category_change_reindexes_both_pairs(db, factory):
    event = factory.event()
    talks = factory.activity_category("Palestra")
    courses = factory.activity_category("Minicurso")
    first, moved, last = (factory.activity(event, category=talks) for _ in range(3))
    factory.activity(event, category=courses)

    updated = edit_activity(db, moved.id, ActivityUpdate(activity_category_id=courses.id))

    assert updated.activity_category_id == courses.id
    assert updated.index_in_category == 2
    db.expire_all()
    assert _indices(db, event.id, talks.id) == [1, 2]
    assert db.get(Activity, last.id).index_in_category == 2
    assert db.get(Activity, first.id).index_in_category == 1


def test_concurrent_creations_never_share_an_index(file_session_factory):
    with file_session_factory() as seed:
        factory = Factory(seed)
        event = factory.event()
        category = factory.activity_category()
        organizer = factory.user()
        event_id, category_id, organizer_id = event.id, category.id, organizer.id
        start = event.start_date + timedelta(hours=9)

    workers = 6
    barrier = threading.Barrier(workers)

    def create(number: int) -> int:
        with file_session_factory() as session:
            payload = ActivityCreate(
                title=f"Parallel {number}",
                vacancy=10,
                workload_in_minutes=60,
                event_id=event_id,
                activity_category_id=category_id,
                schedules=[
                    ScheduleIn(
                        start_date=start + timedelta(hours=number),
                        duration_in_minutes=60,
                        url="https://meet.example.com/parallel",
                    )
                ],
                responsible_user_ids=[organizer_id],
            )
            barrier.wait()
            return create_activity(session, payload).index_in_category

    with ThreadPoolExecutor(max_workers=workers) as pool:
        indices = list(pool.map(create, range(workers)))

    assert sorted(indices) == list(range(1, workers + 1))
    with file_session_factory() as session:
        assert _indices(session, event_id, category_id) == list(range(1, workers + 1))


def _before_first_lock(monkeypatch, concurrent_change):
    """Run ``concurrent_change`` after the activity is loaded but before its index lock is taken."""
    real_lock = activity_service.exclusive_lock
    pending = [concurrent_change]

    @contextmanager
    def lock(db, *keys):
        if pending:
            pending.pop()()
        with real_lock(db, *keys):
            yield

    monkeypatch.setattr(activity_service, "exclusive_lock", lock)


@pytest.fixture
def three_in_one_category(file_session_factory):
    with file_session_factory() as seed:
        factory = Factory(seed)
        event = factory.event()
        first, second, third = (factory.activity_category() for _ in range(3))
        moved = factory.activity(event, category=first)
        for _ in range(2):
            factory.activity(event, category=first)
        return {
            "event": event.id,
            "first": first.id,
            "second": second.id,
            "third": third.id,
            "moved": moved.id,
        }


def _move_to_third(file_session_factory, ids):
    def move():
        with file_session_factory() as other:
            edit_activity(other, ids["moved"], ActivityUpdate(activity_category_id=ids["third"]))

    return move


def test_edit_relocks_when_the_category_changed_before_the_lock(
    file_session_factory, three_in_one_category, monkeypatch
):
    ids = three_in_one_category
    _before_first_lock(monkeypatch, _move_to_third(file_session_factory, ids))

    with file_session_factory() as session:
        updated = edit_activity(session, ids["moved"], ActivityUpdate(activity_category_id=ids["second"]))

        assert updated.activity_category_id == ids["second"]
        assert updated.index_in_category == 1
        assert _indices(session, ids["event"], ids["first"]) == [1, 2]
        assert _indices(session, ids["event"], ids["second"]) == [1]
        assert _indices(session, ids["event"], ids["third"]) == []


def test_delete_relocks_when_the_category_changed_before_the_lock(
    file_session_factory, three_in_one_category, monkeypatch
):
    ids = three_in_one_category
    _before_first_lock(monkeypatch, _move_to_third(file_session_factory, ids))

    with file_session_factory() as session:
        delete_activity(session, ids["moved"])

        assert session.get(Activity, ids["moved"]) is None
        assert _indices(session, ids["event"], ids["first"]) == [1, 2]
        assert _indices(session, ids["event"], ids["third"]) == []
