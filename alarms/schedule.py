"""Next fire instant calculation.

Every function here is pure: the reference "now" is always passed in and the
zone of that datetime is the calendar all wall-clock times are read in.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional

from time_utils import ensure_aware, is_after, shift_minutes

from .errors import (
    AmbiguousOrInvalidLocalTime,
    DateInPast,
    InvalidDateFormat,
    InvalidTimeFormat,
    NoFeasibleOccurrence,
)
from .weekdays import Weekday

MAX_LEAD_MINUTES = 720
DEFAULT_LEAD_MINUTES = 3
REPEAT_SEARCH_DAYS = 14

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")
_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def clamp_lead_minutes(value) -> int:
    try:
        minutes = int(value)
    except (TypeError, ValueError):
        return DEFAULT_LEAD_MINUTES
    return max(0, min(MAX_LEAD_MINUTES, minutes))


def parse_time_label(label: str) -> time:
    match = _TIME_RE.match(label.strip()) if isinstance(label, str) else None
    if not match:
        raise InvalidTimeFormat(f"Time must be in HH:MM format: {label!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise InvalidTimeFormat(f"Time is out of range: {label!r}")
    return time(hour, minute)


def parse_date_label(label: str) -> date:
    match = _DATE_RE.match(label.strip()) if isinstance(label, str) else None
    if not match:
        raise InvalidDateFormat(f"Date must be in YYYY-MM-DD format: {label!r}")
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError as exc:
        raise InvalidDateFormat(f"Invalid date {label!r}: {exc}") from exc


def local_datetime(day: date, at: time, tzinfo) -> datetime:
    """Build ``day`` at ``at`` in ``tzinfo``, refusing DST gaps and overlaps."""
    candidate = datetime(day.year, day.month, day.day, at.hour, at.minute, 0, tzinfo=tzinfo)
    # zoneinfo resolves fold=0 and fold=1 to different offsets exactly when the
    # wall time is skipped or repeated by a transition
    if candidate.utcoffset() != candidate.replace(fold=1).utcoffset():
        raise AmbiguousOrInvalidLocalTime(
            f"{day.isoformat()} {at.strftime('%H:%M')} does not map to a single local time"
        )
    return candidate


def compute_next_fire(
    time_label: str,
    date_label: Optional[str],
    repeat_enabled: bool,
    repeat_days: Iterable[Weekday],
    lead_minutes: int,
    now: datetime,
) -> datetime:
    """Return the next instant the alarm has to ring, already moved earlier by the lead time.

    The nominal time must be strictly later than ``now + lead``. Three modes:

    * repeat: the first matching weekday within two weeks,
    * explicit date: that date only, :class:`DateInPast` if it is already gone,
    * otherwise: today, or tomorrow when today's time has passed.
    """
    at = parse_time_label(time_label)
    lead = clamp_lead_minutes(lead_minutes)
    now = ensure_aware(now)
    tzinfo = now.tzinfo
    adjusted_now = shift_minutes(now, lead)
    days = {Weekday(d) for d in repeat_days or ()}

    if repeat_enabled and days:
        start = adjusted_now.date()
        for offset in range(REPEAT_SEARCH_DAYS):
            day = start + timedelta(days=offset)
            if Weekday.from_date_index(day.weekday()) not in days:
                continue
            try:
                candidate = local_datetime(day, at, tzinfo)
            except AmbiguousOrInvalidLocalTime:
                continue
            if is_after(candidate, adjusted_now):
                return shift_minutes(candidate, -lead)
        raise NoFeasibleOccurrence(
            f"No occurrence of {time_label} on {', '.join(sorted(d.value for d in days))} "
            f"within {REPEAT_SEARCH_DAYS} days"
        )

    date_label = date_label.strip() if date_label else None
    if date_label:
        candidate = local_datetime(parse_date_label(date_label), at, tzinfo)
        if not is_after(candidate, adjusted_now):
            raise DateInPast(f"{date_label} {time_label} is already in the past")
        return shift_minutes(candidate, -lead)

    candidate = local_datetime(adjusted_now.date(), at, tzinfo)
    if not is_after(candidate, adjusted_now):
        candidate = local_datetime(adjusted_now.date() + timedelta(days=1), at, tzinfo)
    return shift_minutes(candidate, -lead)


def format_fire_time(dt: datetime) -> str:
    """Persisted form, always UTC so string order is time order: ``2025-01-01T01:45:00+00:00``."""
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat(timespec="seconds")


def parse_fire_time(text: str) -> datetime:
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        raise ValueError(f"Timestamp without UTC offset: {text!r}")
    return parsed
