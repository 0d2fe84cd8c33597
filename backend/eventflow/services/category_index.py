"""Sequential position of activities inside an (event, category) pair.

Indices of one pair always read 1..N after a commit. Every function here must run
while the caller holds :func:`eventflow.db.locks.exclusive_lock` on
:func:`index_lock_key` for the affected pairs, and the lock must stay held until
the transaction commits.
"""
from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from eventflow.models.activity import Activity


def index_lock_key(event_id: str, category_id: str) -> str:
    return f"activity-index:{event_id}:{category_id}"


def count_in_category(db: Session, event_id: str, category_id: str, *, exclude_activity_id: str | None = None) -> int:
    query = select(func.count(Activity.id)).where(
        Activity.event_id == event_id,
        Activity.activity_category_id == category_id,
    )
    if exclude_activity_id is not None:
        query = query.where(Activity.id != exclude_activity_id)
    return db.execute(query).scalar_one()


def next_index(db: Session, event_id: str, category_id: str, *, exclude_activity_id: str | None = None) -> int:
    return count_in_category(db, event_id, category_id, exclude_activity_id=exclude_activity_id) + 1


def close_gap(
    db: Session,
    event_id: str,
    category_id: str,
    removed_index: int,
    *,
    exclude_activity_id: str | None = None,
) -> int:
    """Shift every index above ``removed_index`` down by one; returns the rows touched.

    Loaded siblings keep their old index until the caller commits.
    """
    statement = (
        update(Activity)
        .where(
            Activity.event_id == event_id,
            Activity.activity_category_id == category_id,
            Activity.index_in_category > removed_index,
        )
        .values(index_in_category=Activity.index_in_category - 1)
        .execution_options(synchronize_session=False)
    )
    if exclude_activity_id is not None:
        statement = statement.where(Activity.id != exclude_activity_id)
    result = db.execute(statement)
    return result.rowcount
