"""
Occurrence resolution for rental time slots.

Slot dates are wall-clock values with no timezone attached. The resolver works
entirely on naive datetimes: callers pass "now" explicitly and aware values are
first converted into the discovery timezone. Nothing here reads the system
clock or raises; a slot that cannot produce an occurrence resolves to ``None``.
"""

import logging
import re
from datetime import datetime, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ...config import DISCOVER_TIMEZONE
from .records import TimeSlot

logger = logging.getLogger(__name__)

WEEKDAY_LABELS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

_OFFSET_SUFFIX = re.compile(r"([+-]\d{2}:?\d{2}|Z)$", re.IGNORECASE)
_FRACTION_SUFFIX = re.compile(r"\.\d+$")
_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_HOUR_MINUTE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}$")


def parse_local_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a stored slot date into a naive wall-clock datetime.

    Offsets and fractional seconds are dropped so "2024-01-02T18:00:00Z" and
    "2024-01-02T18:00:00" both mean 18:00 on the slot's own clock.
    Returns None for anything unparsable.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return value.replace(tzinfo=None)

    if not isinstance(value, str):
        return None

    working = value.strip()
    if not working:
        return None

    working = _FRACTION_SUFFIX.sub("", working)
    working = _OFFSET_SUFFIX.sub("", working)
    working = _FRACTION_SUFFIX.sub("", working)

    if _DATE_ONLY.match(working):
        working = f"{working}T00:00:00"
    elif _DATE_HOUR_MINUTE.match(working):
        working = f"{working}:00"

    try:
        return datetime.fromisoformat(working.replace(" ", "T")).replace(tzinfo=None)
    except ValueError:
        logger.debug(f"Unparsable slot date: {value!r}")
        return None


def _discover_zone() -> ZoneInfo:
    try:
        return ZoneInfo(DISCOVER_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"⚠️ Unknown DISCOVER_TIMEZONE {DISCOVER_TIMEZONE!r}, falling back to UTC")
        return ZoneInfo("UTC")


def to_local_reference(reference: datetime) -> datetime:
    """Bring "now" onto the same naive wall clock the slots use"""
    if reference.tzinfo is None:
        return reference
    return reference.astimezone(_discover_zone()).replace(tzinfo=None)


def normalize_day_of_week(day: int) -> int:
    return day % 7


def weekday_label(day: int) -> str:
    return WEEKDAY_LABELS[normalize_day_of_week(day)]


def align_date_to_day(seed: datetime, day_of_week: int) -> datetime:
    """Midnight of the first date on or after ``seed`` that falls on ``day_of_week``"""
    aligned = seed.replace(hour=0, minute=0, second=0, microsecond=0)
    diff = (normalize_day_of_week(day_of_week) - aligned.weekday()) % 7
    return aligned + timedelta(days=diff)


def _apply_time_of_day(day: datetime, slot: TimeSlot, start: datetime) -> datetime:
    midnight = day.replace(hour=0, minute=0, second=0, microsecond=0)
    if slot.start_time_minutes is not None:
        return midnight + timedelta(minutes=slot.start_time_minutes)
    return midnight.replace(
        hour=start.hour,
        minute=start.minute,
        second=start.second,
        microsecond=start.microsecond,
    )


def _past_end(candidate: datetime, end_date: Optional[datetime]) -> bool:
    return end_date is not None and candidate > end_date


def resolve_next_occurrence(slot: TimeSlot, reference: datetime) -> Optional[datetime]:
    """
    Next concrete start of ``slot`` at or after ``reference``.

    One-off slots return their own start unless it is already behind
    ``reference``. Weekly slots walk forward from the later of ``reference``
    and the slot's first day to the slot weekday, push one week further when
    that day's start time has passed, and give up once the result would land
    after ``end_date``.
    """
    start = parse_local_datetime(slot.start_date)
    if start is None:
        return None

    now = to_local_reference(reference)

    try:
        return _next_start(slot, start, now)
    except OverflowError as e:
        # Minute offsets or weekly steps past datetime.max
        logger.debug(f"Occurrence out of range for slot {slot.id}: {e}")
        return None


def _next_start(slot: TimeSlot, start: datetime, now: datetime) -> Optional[datetime]:
    if not slot.repeating:
        occurrence = _apply_time_of_day(start, slot, start)
        if occurrence < now:
            return None
        return occurrence

    if slot.day_of_week is not None:
        slot_day = normalize_day_of_week(slot.day_of_week)
    else:
        slot_day = start.weekday()

    end_date = parse_local_datetime(slot.end_date)
    base = start.replace(hour=0, minute=0, second=0, microsecond=0)
    anchor = max(now, base)

    if _past_end(anchor, end_date):
        return None

    occurrence = _apply_time_of_day(align_date_to_day(anchor, slot_day), slot, start)
    if _past_end(occurrence, end_date):
        return None

    if occurrence < now:
        occurrence += timedelta(days=7)
        if _past_end(occurrence, end_date):
            return None

    return occurrence
