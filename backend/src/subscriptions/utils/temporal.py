"""Selection of the record in effect at a given instant.

Plan rates, quota defaults and subscriptions are all time-ranged rows. A row
is in effect when ``start <= now < end`` or when it has no end and
``start <= now``. Several rows may qualify at once; the one that started last
wins.
"""
from datetime import datetime, timezone
from operator import attrgetter
from typing import Callable, Iterable, TypeVar

T = TypeVar("T")


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _getter(field: str | Callable[[T], datetime | None] | None) -> Callable[[T], datetime | None]:
    if field is None:
        return lambda _candidate: None
    if callable(field):
        return field
    return attrgetter(field)


def is_active(start: datetime, end: datetime | None, now: datetime) -> bool:
    """Whether the interval ``[start, end)`` contains ``now``; an unset end never closes it."""
    if now < start:
        return False
    return end is None or now < end


def active_among(
    now: datetime,
    candidates: Iterable[T],
    start_field: str | Callable[[T], datetime] = "effective_start_date",
    end_field: str | Callable[[T], datetime | None] | None = "effective_end_date",
) -> T | None:
    """
    Pick the candidate in effect at ``now``.

    Args:
        now: Instant to evaluate
        candidates: Time-ranged records
        start_field: Attribute name (or accessor) of the interval start
        end_field: Attribute name (or accessor) of the interval end; ``None``
            for records that are only ever superseded, never closed

    Returns:
        The qualifying candidate with the latest start, or None when no
        candidate is in effect
    """
    get_start = _getter(start_field)
    get_end = _getter(end_field)

    selected = None
    selected_start = None
    for candidate in candidates:
        start = get_start(candidate)
        if start is None or not is_active(start, get_end(candidate), now):
            continue
        if selected_start is None or start > selected_start:
            selected, selected_start = candidate, start

    return selected


def as_naive_utc(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC; naive values are assumed to be UTC already."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
