"""
Wall-clock helpers for the canteen's single service timezone.

Campaign windows and service hours are stored as a local date plus an
"HH:MM" clock time, so they are compared against naive local datetimes
rather than UTC instants. Every read and write path goes through here so
the comparison stays consistent.
"""
from datetime import date, datetime, time
from typing import Optional, Tuple

import pytz
from django.conf import settings
from django.utils import timezone


def service_timezone():
    return pytz.timezone(settings.CANTEEN_TIME_ZONE)


def local_now(now: Optional[datetime] = None) -> datetime:
    """
    Current wall-clock time in the service timezone, as a naive datetime.

    An aware `now` is converted; a naive one is assumed to already be local.
    """
    if now is None:
        now = timezone.now()
    if timezone.is_naive(now):
        return now
    return now.astimezone(service_timezone()).replace(tzinfo=None)


def parse_clock_time(value: str) -> time:
    """Parse an "HH:MM" clock time."""
    if not isinstance(value, str):
        raise ValueError(f"Invalid clock time: {value!r}")
    try:
        hours, minutes = value.strip().split(":")
        return time(int(hours), int(minutes))
    except (TypeError, ValueError):
        raise ValueError(f"Invalid clock time: {value!r}. Expected HH:MM.")


def combine(day: date, clock: str) -> datetime:
    """Combine a local date with an "HH:MM" clock time into a naive datetime."""
    return datetime.combine(day, parse_clock_time(clock))


def is_now_between(start: str, end: str, now: Optional[datetime] = None) -> bool:
    """
    Whether the local clock time is inside the daily [start, end] range.

    A range whose end is before its start wraps past midnight (22:00-02:00).
    Missing bounds mean "always".
    """
    if not start or not end:
        return True

    current = local_now(now)
    start_dt = datetime.combine(current.date(), parse_clock_time(start))
    end_dt = datetime.combine(current.date(), parse_clock_time(end))

    if start_dt <= end_dt:
        return start_dt <= current <= end_dt

    # Overnight range
    return current >= start_dt or current <= end_dt


def local_day_bounds(day: date) -> Tuple[datetime, datetime]:
    """
    Aware datetimes for [day 00:00:00.000, day 23:59:59.999] in the service
    timezone, suitable for filtering stored UTC timestamps.
    """
    tz = service_timezone()
    start = tz.localize(datetime.combine(day, time.min))
    end = tz.localize(datetime.combine(day, time(23, 59, 59, 999000)))
    return start, end