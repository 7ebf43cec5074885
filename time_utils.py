from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

LOCALTIME_PATH = Path("/etc/localtime")


def _load_zone(name: str) -> Optional[ZoneInfo]:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        logger.debug("Failed to load timezone %s via zoneinfo (%s)", name, exc)
        return None


def local_timezone(localtime: Path = LOCALTIME_PATH) -> Optional[ZoneInfo]:
    """The host's IANA zone from ``TZ`` or the ``/etc/localtime`` link, if it can be named."""
    name = os.environ.get("TZ", "").lstrip(":")
    if name:
        zone = _load_zone(name)
        if zone:
            return zone
    try:
        target = str(localtime.resolve(strict=True))
    except OSError:
        return None
    if "zoneinfo/" not in target:
        return None
    return _load_zone(target.split("zoneinfo/", 1)[1])


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """Return the named IANA zone, else the host zone.

    None means the host zone could not be named; callers then take the host
    offset afresh on every reading of the clock.
    """
    if name:
        zone = _load_zone(name)
        if zone:
            return zone
        logger.warning("Unknown timezone %s, using the system local timezone instead", name)
    zone = local_timezone()
    if zone is None:
        logger.warning("System timezone has no IANA name, following the host UTC offset")
    return zone


def now_in_tz(tzinfo) -> datetime:
    if tzinfo:
        return datetime.now(tzinfo)
    return datetime.now().astimezone()


def ensure_aware(dt: datetime, tzinfo=None) -> datetime:
    if dt.tzinfo is not None and dt.utcoffset() is not None:
        return dt
    if tzinfo:
        return dt.replace(tzinfo=tzinfo)
    return dt.astimezone()


def shift_minutes(dt: datetime, minutes: int) -> datetime:
    """Move an aware datetime by elapsed minutes, keeping its zone.

    Arithmetic on aware datetimes sharing a tzinfo is wall-clock arithmetic in
    Python, which is off by the DST delta across a transition; going through
    UTC keeps it on absolute time.
    """
    shifted = dt.astimezone(timezone.utc) + timedelta(minutes=minutes)
    return shifted.astimezone(dt.tzinfo)


def is_after(a: datetime, b: datetime) -> bool:
    """Absolute-time ``a > b`` for aware datetimes, whatever their zones."""
    return a.astimezone(timezone.utc) > b.astimezone(timezone.utc)


def format_tz_offset(tzinfo) -> str:
    sample = now_in_tz(tzinfo)
    offset = tzinfo.utcoffset(sample) if hasattr(tzinfo, "utcoffset") else None
    if offset is None:
        return ""
    total_minutes = int(offset.total_seconds() // 60)
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    return f"{sign}{hours:02d}:{minutes:02d}"
