# services/api/core/aging.py
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from typing import Optional

ONE_WEEK = timedelta(days=7)

# Non-ISO layouts seen in hand-maintained sheets (US style first, like the UI).
_FALLBACK_FORMATS = ("%m/%d/%Y", "%m/%d/%Y %H:%M", "%d-%b-%Y", "%Y/%m/%d")


def utc_now_iso() -> str:
    """Microsecond-resolution UTC timestamp, e.g. 2024-03-01T10:15:00.123456Z."""
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")


def parse_submitted_date(value: object) -> Optional[datetime]:
    """
    Parse a submitted-date cell into an aware UTC datetime.

    Accepts ISO dates/datetimes (with or without offset, trailing "Z" ok)
    plus a few spreadsheet layouts. Returns None for empty/unparseable input.
    Naive values are treated as UTC.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        s = str(value).strip()
        if not s:
            return None
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        dt = None
        try:
            dt = datetime.fromisoformat(s)
        except ValueError:
            for fmt in _FALLBACK_FORMATS:
                try:
                    dt = datetime.strptime(s, fmt)
                    break
                except ValueError:
                    continue
        if dt is None:
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    try:
        return dt.astimezone(timezone.utc)
    except OverflowError:
        # e.g. 0001-01-01 with a positive offset
        return None


def calculate_weeks_since(date_string: object, now: Optional[datetime] = None) -> int:
    """
    Whole weeks elapsed since `date_string`.

    0 for empty/unparseable input, for "now" itself and for any future date.
    """
    then = parse_submitted_date(date_string)
    if then is None:
        return 0
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    elapsed = current - then
    if elapsed <= timedelta(0):
        return 0
    return int(math.floor(elapsed / ONE_WEEK))


def sort_timestamp(date_string: object) -> float:
    """Sort key for newest-first ordering; missing or unparseable dates sort as the oldest."""
    dt = parse_submitted_date(date_string)
    if dt is None:
        return float("-inf")
    return dt.timestamp()
