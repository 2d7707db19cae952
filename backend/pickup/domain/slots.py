"""Slot enumeration for a pickup window.

Slots are naive wall-clock times on the event's date. Both window ends are
included: 09:00-10:00 every 20 minutes gives 09:00, 09:20, 09:40 and 10:00.
"""
from datetime import date, datetime, time, timedelta

# Anchor day used only to do clock arithmetic; never exposed.
_ANCHOR = date(2000, 1, 1)


def _seconds(t: time) -> int:
    return t.hour * 3600 + t.minute * 60 + t.second


def _interval_seconds(interval_minutes: int) -> int:
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")
    return interval_minutes * 60


def slot_count(start: time, end: time, interval_minutes: int) -> int:
    step = _interval_seconds(interval_minutes)
    span = _seconds(end) - _seconds(start)
    if span < 0:
        return 0
    return span // step + 1


def enumerate_slots(start: time, end: time, interval_minutes: int) -> list[time]:
    """Return slot times earliest first; empty when ``end`` precedes ``start``."""
    count = slot_count(start, end, interval_minutes)
    first = datetime.combine(_ANCHOR, start.replace(microsecond=0))
    step = timedelta(minutes=interval_minutes)
    return [(first + step * k).time() for k in range(count)]


def is_slot(start: time, end: time, interval_minutes: int, candidate: time) -> bool:
    if candidate.microsecond:
        return False
    offset = _seconds(candidate) - _seconds(start)
    if offset < 0 or _seconds(candidate) > _seconds(end):
        return False
    return offset % _interval_seconds(interval_minutes) == 0


def format_clock(value: time) -> str:
    return value.strftime("%H:%M:%S")
