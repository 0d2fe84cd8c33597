from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from eventflow.core.exceptions import ResourceNotFoundError, UnconfirmedUsersError
from eventflow.models.user import User


def find_active_users(db: Session, user_ids: Iterable[str]) -> list[User]:
    """Resolve ids to active users, raising when any of them is missing or inactive."""
    requested = list(dict.fromkeys(user_ids))
    if not requested:
        return []
    users = list(
        db.execute(
            select(User).where(
                User.id.in_(requested),
                User.is_active.is_(True),
            )
        ).scalars()
    )
    found = {user.id for user in users}
    missing = [user_id for user_id in requested if user_id not in found]
    if missing:
        raise UnconfirmedUsersError(missing)
    by_id = {user.id: user for user in users}
    return [by_id[user_id] for user_id in requested]


def get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise ResourceNotFoundError("User", user_id)
    return user
