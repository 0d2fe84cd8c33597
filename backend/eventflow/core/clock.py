from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current instant as naive UTC, matching how instants are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
