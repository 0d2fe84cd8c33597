from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
import hashlib
from threading import Lock

from sqlalchemy import text
from sqlalchemy.orm import Session


class _KeyedLocks:
    """Process-local mutexes keyed by resource name."""

    def __init__(self) -> None:
        self._locks: dict[str, Lock] = defaultdict(Lock)
        self._guard = Lock()

    def get(self, key: str) -> Lock:
        with self._guard:
            return self._locks[key]

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()


_local_locks = _KeyedLocks()


def advisory_key(resource: str) -> int:
    digest = hashlib.blake2b(resource.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


@contextmanager
def exclusive_lock(db: Session, *resources: str) -> Iterator[None]:
    """Hold an exclusive lock on every named resource for the enclosed block.

    PostgreSQL gets transaction-scoped advisory locks, released by the commit or
    rollback the caller performs inside the block. Other dialects fall back to an
    in-process mutex per resource, released when the block exits.
    Resources are always acquired in sorted order.
    """
    keys = sorted(set(resources))
    if db.get_bind().dialect.name == "postgresql":
        for key in keys:
            db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": advisory_key(key)})
        yield
        return

    with ExitStack() as stack:
        for key in keys:
            stack.enter_context(_local_locks.get(key))
        yield


def clear_local_locks() -> None:
    _local_locks.clear()
