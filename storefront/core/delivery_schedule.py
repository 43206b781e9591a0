"""
Earliest delivery/pickup day an event still accepts orders for.

Read from the event's checkout config: `cutoffDaysOffset` days of lead time,
plus one more day once the clock passes today's `cutoffTime`. An event with
neither setting has no earliest day.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta

DEFAULT_CUTOFF_MESSAGE = "Orders for this date are closed."


def current_time() -> datetime:
    """Request clock; overridden in tests."""
    return datetime.now()


def is_past_cutoff(now: datetime, cutoff_time: str | None) -> bool:
    if not cutoff_time:
        return False
    try:
        cutoff = time.fromisoformat(cutoff_time)
    except ValueError:
        return False
    return now.time() >= cutoff


def earliest_delivery_date(config: dict | None, now: datetime) -> date | None:
    config = config or {}
    cutoff_time = config.get("cutoffTime")
    offset = config.get("cutoffDaysOffset")
    if not cutoff_time and offset is None:
        return None

    days = offset if isinstance(offset, int) and offset > 0 else 0
    if is_past_cutoff(now, cutoff_time):
        days += 1
    return now.date() + timedelta(days=days)


def cutoff_message(config: dict | None) -> str:
    return (config or {}).get("cutoffMessage") or DEFAULT_CUTOFF_MESSAGE
