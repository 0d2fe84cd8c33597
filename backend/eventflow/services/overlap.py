from __future__ import annotations

from datetime import datetime, timedelta


def schedule_end(start: datetime, duration_in_minutes: int) -> datetime:
    return start + timedelta(minutes=duration_in_minutes)


def overlaps(a_start: datetime, a_duration: int, b_start: datetime, b_duration: int) -> bool:
    """Tell whether interval ``a`` collides with interval ``b``.

    Intervals are half-open, ``[start, start + duration)``, durations in minutes.
    ``a`` collides when its start falls inside ``b`` or its end falls inside ``b``.
    This is not the textbook ``a_start < b_end and b_start < a_end``:
    when ``a`` strictly contains ``b`` neither endpoint of ``a`` lies in ``b`` and the
    result is ``False``, so ``overlaps(a, b)`` and ``overlaps(b, a)`` can disagree.
    """
    a_end = schedule_end(a_start, a_duration)
    b_end = schedule_end(b_start, b_duration)
    return (a_start >= b_start and a_start < b_end) or (a_end > b_start and a_end <= b_end)
