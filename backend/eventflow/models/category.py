import uuid

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from eventflow.db.base import Base


class EventCategory(Base):
    __tablename__ = "event_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    code: Mapped[str] = mapped_column(String(15), unique=True, nullable=False)


class EventArea(Base):
    __tablename__ = "event_areas"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    sigla: Mapped[str] = mapped_column(String(15), nullable=False)


class ActivityCategory(Base):
    __tablename__ = "activity_categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code: Mapped[str] = mapped_column(String(2), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(String(100), nullable=False)
