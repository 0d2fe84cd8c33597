from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Commit the enclosed unit of work, or roll it back on any error."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
