import itertools
import os
from datetime import datetime, timedelta

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from eventflow.api.deps import get_db
from eventflow.core.clock import utcnow
from eventflow.db.base import Base
from eventflow.db.locks import clear_local_locks
from eventflow.main import app
from eventflow.models.activity import Activity
from eventflow.models.category import ActivityCategory, EventCategory
from eventflow.models.event import EditionDisplay, Event, NameDisplay
from eventflow.models.room import Room
from eventflow.models.user import User
from eventflow.schemas.activity import ActivityCreate, ScheduleIn
from eventflow.services.activities import create_activity


def future_day(days: int = 30) -> datetime:
    """Midnight ``days`` from today, so events stay open whatever day the suite runs."""
    return (utcnow() + timedelta(days=days)).replace(hour=0, minute=0, second=0, microsecond=0)


class Factory:
    def __init__(self, db: Session):
        self.db = db
        self._sequence = itertools.count(1)

    def _next(self) -> int:
        return next(self._sequence)

    def _save(self, instance):
        self.db.add(instance)
        self.db.commit()
        self.db.refresh(instance)
        return instance

    def user(self, name: str | None = None, *, is_active: bool = True) -> User:
        number = self._next()
        return self._save(
            User(
                name=name or f"User {number}",
                email=f"user{number}@example.com",
                is_active=is_active,
            )
        )

    def room(self, code: str | None = None, capacity: int = 40) -> Room:
        return self._save(Room(code=code or f"R{self._next()}", capacity=capacity, description="Lab"))

    def event_category(self, category: str = "Semana Academica") -> EventCategory:
        return self._save(EventCategory(category=category, code=f"sa{self._next()}"))

    def activity_category(self, description: str = "Palestra") -> ActivityCategory:
        return self._save(ActivityCategory(code=f"{self._next():02d}", description=description))

    def event(
        self,
        *,
        start: datetime | None = None,
        days: int = 3,
        registry_start: datetime | None = None,
        registry_end: datetime | None = None,
        visible: bool = True,
        category: EventCategory | None = None,
        edition: int = 1,
        display: NameDisplay = NameDisplay.show_all,
        edition_display: EditionDisplay = EditionDisplay.arabic,
    ) -> Event:
        start = start or future_day()
        return self._save(
            Event(
                edition=edition,
                description="",
                start_date=start,
                end_date=start + timedelta(days=days),
                registry_start_date=registry_start or utcnow() - timedelta(days=1),
                registry_end_date=registry_end or start,
                status_visible=visible,
                display=display,
                edition_display=edition_display,
                event_category=category or self.event_category(),
            )
        )

    @staticmethod
    def schedule(start: datetime, minutes: int = 60, *, room: Room | None = None, url: str | None = None) -> ScheduleIn:
        if room is None and url is None:
            url = "https://meet.example.com/room"
        return ScheduleIn(
            start_date=start,
            duration_in_minutes=minutes,
            room_id=room.id if room is not None else None,
            url=url,
        )

    def activity(
        self,
        event: Event,
        *,
        category: ActivityCategory | None = None,
        schedules: list[ScheduleIn] | None = None,
        responsible: list[User] | None = None,
        teaching: list[User] | None = None,
        title: str | None = None,
        now: datetime | None = None,
    ) -> Activity:
        category = category or self.activity_category()
        payload = ActivityCreate(
            title=title or f"Activity {self._next()}",
            vacancy=30,
            workload_in_minutes=60,
            event_id=event.id,
            activity_category_id=category.id,
            schedules=schedules or [self.schedule(event.start_date + timedelta(hours=9))],
            responsible_user_ids=[user.id for user in (responsible or [self.user()])],
            teaching_user_ids=[user.id for user in (teaching or [])],
        )
        return create_activity(self.db, payload, now=now)


@pytest.fixture(autouse=True)
def _reset_locks():
    clear_local_locks()
    yield
    clear_local_locks()


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def factory(db):
    return Factory(db)


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
