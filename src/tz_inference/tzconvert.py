"""UTC/local hour arithmetic on a 24-hour clock.

All histogram buckets are stored in UTC. Offsets are whole hours, negative west
of Greenwich (``-4`` for EDT, ``8`` for China). Every result is wrapped into
``[0, 24)``, so out-of-range inputs are normalized rather than rejected.
"""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

HOURS_PER_DAY = 24.0

_UTC_OFFSET_PATTERN = re.compile(r"^(?:UTC|GMT)\s*([+-]?)(\d+(?:\.\d+)?)?$", re.IGNORECASE)


def wrap_hour(hour: float) -> float:
    return hour % HOURS_PER_DAY


def utc_to_local(utc_hour: float, offset: int) -> float:
    """``utc_to_local(15.5, -4) == 11.5`` (15:30 UTC is 11:30 EDT)."""
    return wrap_hour(utc_hour + offset)


def local_to_utc(local_hour: float, offset: int) -> float:
    """``local_to_utc(10.0, 8) == 2.0`` (10:00 CST is 02:00 UTC)."""
    return wrap_hour(local_hour - offset)


def range_utc_to_local(start_utc: float, end_utc: float, offset: int) -> tuple[float, float]:
    return utc_to_local(start_utc, offset), utc_to_local(end_utc, offset)


def range_local_to_utc(start_local: float, end_local: float, offset: int) -> tuple[float, float]:
    return local_to_utc(start_local, offset), local_to_utc(end_local, offset)


def hour_in_window(hour: float, start: float, end: float) -> bool:
    """Half-open ``[start, end)`` membership on the 24-hour clock; the window may wrap midnight."""
    hour = wrap_hour(hour)
    start = wrap_hour(start)
    end = wrap_hour(end)
    if start == end:
        return False
    if start < end:
        return start <= hour < end
    return hour >= start or hour < end


def format_offset(offset: int) -> str:
    sign = "-" if offset < 0 else "+"
    return f"UTC{sign}{abs(int(offset))}"


def format_hour(hour: float) -> str:
    hour = wrap_hour(hour)
    whole = int(hour)
    minutes = int(round((hour - whole) * 60))
    if minutes == 60:
        whole, minutes = (whole + 1) % 24, 0
    return f"{whole:02d}:{minutes:02d}"


def _round_half_away(value: float) -> int:
    magnitude = math.floor(abs(value) + 0.5)
    return -magnitude if value < 0 else magnitude


def parse_utc_offset(value: str, *, now: datetime | None = None) -> int | None:
    """Parse ``"UTC-4"``, ``"UTC+5.5"``, ``"UTC"`` or an IANA zone name into whole hours.

    Fractional offsets round half away from zero. IANA names resolve to the offset in
    effect at ``now`` (defaults to the current time). Returns ``None`` when the value
    is neither form.
    """
    text = value.strip()
    match = _UTC_OFFSET_PATTERN.match(text)
    if match:
        sign, magnitude = match.groups()
        if magnitude is None:
            return 0 if not sign else None
        hours = _round_half_away(float(magnitude))
        return -hours if sign == "-" else hours

    try:
        zone = ZoneInfo(text)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None
    moment = now or datetime.now(timezone.utc)
    utc_offset = moment.astimezone(zone).utcoffset()
    if utc_offset is None:
        return None
    return _round_half_away(utc_offset.total_seconds() / 3600.0)
