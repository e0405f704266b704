"""Reporting windows and the time-window order filter.

A window is one of a closed set of frozen dataclasses. Bounds follow the
calendar of ``now`` (the system local calendar by default) and are always
timezone-aware, matching the aware timestamps every Order carries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import List, Optional, Tuple, Union

from .models import Order

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)


@dataclass(frozen=True)
class AllTime:
    """No restriction."""


@dataclass(frozen=True)
class Today:
    """The local calendar day containing ``now``."""


@dataclass(frozen=True)
class TrailingDays:
    """From ``now - days`` up to and including ``now``."""
    days: int

    def __post_init__(self) -> None:
        if self.days < 0:
            raise ValueError(f"TrailingDays requires days >= 0, got {self.days}")


@dataclass(frozen=True)
class PreviousCalendarMonth:
    """First through last day, inclusive, of the month before ``now``'s."""


@dataclass(frozen=True)
class CustomRange:
    """Explicit range, inclusive on both ends.

    Attributes:
        start: A date (start of that day) or an exact datetime
        end: A date or datetime; its time is always forced to end of day
    """
    start: Union[date, datetime]
    end: Union[date, datetime]


WindowSpec = Union[AllTime, Today, TrailingDays, PreviousCalendarMonth, CustomRange]


def _calendar_zone(now: datetime) -> Optional[tzinfo]:
    """Zone whose calendar the bounds follow, or None for the system one.

    A naive ``now``, or a fixed offset equal to the local offset (what
    ``datetime.now().astimezone()`` returns), means the system calendar.
    """
    zone = now.tzinfo
    if zone is None:
        return None
    if isinstance(zone, timezone) and now.utcoffset() == now.astimezone().utcoffset():
        return None
    return zone


def _localize(value: datetime, zone: Optional[tzinfo]) -> datetime:
    if value.tzinfo is not None:
        return value
    if zone is None:
        # Each local wall time gets its own offset, so DST is respected
        return value.astimezone()
    return value.replace(tzinfo=zone)


def _calendar_date(now: datetime, zone: Optional[tzinfo]) -> date:
    if zone is None and now.tzinfo is not None:
        return now.astimezone().date()
    return now.date()


def _start_of_day(day: date, zone: Optional[tzinfo]) -> datetime:
    return _localize(datetime.combine(day, time.min), zone)


def _end_of_day(day: date, zone: Optional[tzinfo]) -> datetime:
    return _localize(datetime.combine(day, END_OF_DAY), zone)


def _as_start(value: Union[date, datetime], zone: Optional[tzinfo]) -> datetime:
    if isinstance(value, datetime):
        return _localize(value, zone)
    return _start_of_day(value, zone)


def _as_end(value: Union[date, datetime], zone: Optional[tzinfo]) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return datetime.combine(value.date(), END_OF_DAY, tzinfo=value.tzinfo)
        value = value.date()
    return _end_of_day(value, zone)


def window_bounds(
    window: WindowSpec, now: datetime
) -> Optional[Tuple[datetime, datetime]]:
    """Resolve a window to inclusive, timezone-aware ``(lower, upper)`` bounds.

    Calendar bounds (day starts and ends) are built as wall-clock times in
    the zone of ``now`` and only then given an offset, so a window that
    spans a DST change keeps each bound at local midnight.

    Args:
        window: The reporting window
        now: Reference time; naive or local-offset values mean the system
            calendar, a named zone (e.g. ZoneInfo) means that zone's calendar

    Returns:
        Bounds tuple, or None for AllTime

    Raises:
        TypeError: If window is not a known WindowSpec
    """
    zone = _calendar_zone(now)
    if isinstance(window, AllTime):
        return None
    if isinstance(window, Today):
        today = _calendar_date(now, zone)
        return _start_of_day(today, zone), _end_of_day(today, zone)
    if isinstance(window, TrailingDays):
        return _localize(now - timedelta(days=window.days), zone), _localize(now, zone)
    if isinstance(window, PreviousCalendarMonth):
        first_of_this_month = _calendar_date(now, zone).replace(day=1)
        last_of_previous = first_of_this_month - timedelta(days=1)
        first_of_previous = last_of_previous.replace(day=1)
        return _start_of_day(first_of_previous, zone), _end_of_day(last_of_previous, zone)
    if isinstance(window, CustomRange):
        return _as_start(window.start, zone), _as_end(window.end, zone)
    raise TypeError(f"Unknown window spec: {window!r}")


def filter_orders(
    orders: List[Order], window: WindowSpec, now: Optional[datetime] = None
) -> List[Order]:
    """Restrict orders to a reporting window.

    A reversed custom range simply matches nothing. Input order is preserved.

    Args:
        orders: Orders to filter
        window: The reporting window
        now: Reference time (default: current local time, timezone-aware)

    Returns:
        Orders whose timestamp falls inside the window
    """
    if now is None:
        now = datetime.now().astimezone()

    bounds = window_bounds(window, now)
    if bounds is None:
        return list(orders)

    lower, upper = bounds
    filtered = [o for o in orders if lower <= o.timestamp <= upper]
    logger.debug(f"Window {window!r} kept {len(filtered)} of {len(orders)} orders")
    return filtered


def parse_window(
    key: str,
    start: Optional[Union[date, datetime]] = None,
    end: Optional[Union[date, datetime]] = None,
) -> WindowSpec:
    """Map a dashboard filter key to a window.

    Keys: "all", "today", "week" (7 trailing days), "month" (30 trailing
    days), "lastMonth", "custom". A custom range missing either date
    falls back to AllTime.

    Raises:
        ValueError: If key is not recognised
    """
    if key == "all":
        return AllTime()
    if key == "today":
        return Today()
    if key == "week":
        return TrailingDays(7)
    if key == "month":
        return TrailingDays(30)
    if key == "lastMonth":
        return PreviousCalendarMonth()
    if key == "custom":
        if start is None or end is None:
            return AllTime()
        return CustomRange(start, end)
    raise ValueError(f"Unknown window key: {key!r}")
