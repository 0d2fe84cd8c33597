from collections.abc import Generator

from fastapi import Header
from sqlalchemy.orm import Session

from eventflow.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_actor_id(x_actor_id: str | None = Header(default=None)) -> str | None:
    """Id of the user performing the request, as forwarded by the gateway."""
    return x_actor_id
