from __future__ import annotations

import logging

from sqlalchemy import inspect

from eventflow.db.base import Base
from eventflow.db.session import engine
import eventflow.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "events": {"id", "end_date", "registry_start_date", "registry_end_date", "status_visible"},
    "activities": {"id", "event_id", "activity_category_id", "index_in_category", "ready_for_certificate_emission"},
    "schedules": {"id", "activity_id", "start_date", "duration_in_minutes", "room_id", "url"},
    "activity_registries": {"id", "user_id", "activity_id", "ready_for_certificate"},
    "presences": {"id", "registry_id", "schedule_id", "is_present"},
}


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        missing_tables = [name for name in REQUIRED_COLUMNS if name not in table_names]
        if missing_tables:
            raise RuntimeError(f"Missing required tables: {', '.join(sorted(missing_tables))}")

        missing_columns: list[str] = []
        for table_name, required in REQUIRED_COLUMNS.items():
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            for column_name in sorted(required - existing):
                missing_columns.append(f"{table_name}.{column_name}")
        if missing_columns:
            raise RuntimeError(f"Missing required columns: {', '.join(missing_columns)}")


def ensure_schema() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except Exception as exc:
        logger.exception("Schema bootstrap failed")
        raise RuntimeError("Schema bootstrap failed") from exc
