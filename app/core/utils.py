"""Shared helper utilities reused across services and routes."""
from __future__ import annotations

import calendar
import re
import unicodedata
from datetime import datetime, time, timedelta
from typing import Any

_SLUG_STRIP = re.compile(r"[^\w\s-]")
_SLUG_DASH = re.compile(r"[-\s_]+")


def parse_hhmm(value: Any) -> time | None:
    """Parse an ``HH:MM`` (or ``HH:MM:SS``) string into a time.

    Only the first five characters are considered, so values stored with
    seconds compare at minute granularity. Returns None when malformed.
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        return None
    raw = value.strip()[:5]
    try:
        return datetime.strptime(raw, "%H:%M").time()
    except ValueError:
        return None


def format_hhmm(value: time) -> str:
    return value.strftime("%H:%M")


def hourly_slots(opening: Any, closing: Any) -> list[str]:
    """Hourly start times from opening while strictly before closing."""
    start = parse_hhmm(opening)
    end = parse_hhmm(closing)
    if start is None or end is None:
        return []

    slots: list[str] = []
    cursor = datetime.combine(datetime.min.date(), start)
    limit = datetime.combine(datetime.min.date(), end)
    while cursor < limit:
        slots.append(cursor.strftime("%H:%M"))
        cursor += timedelta(hours=1)
    return slots


def slugify(value: str) -> str:
    """ASCII slug for file names."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    normalized = _SLUG_STRIP.sub("", normalized).strip().lower()
    return _SLUG_DASH.sub("-", normalized).strip("-") or "image"


def add_months(value: datetime, months: int) -> datetime:
    """Shift by calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)
