"""Date/time resolution for chat export header lines.

WhatsApp exports print dates in the device locale, so the same transcript
format appears as ``13/05/2024``, ``05/13/2024``, ``13.05.24`` or
``13-05-2024``. Year-first dates are not recognised. This module resolves
a raw date token plus time token into a local-clock timestamp.

Ordering rules for the three numeric date parts:
  1. first > 12  -> day / month / year
  2. second > 12 -> month / day / year
  3. otherwise   -> day / month / year (ambiguous, day-first assumed)

Two-digit years below 50 land in the 2000s, the rest in the 1900s.

Resolution is best-effort: ``resolve_timestamp`` never raises and falls back
to the current instant. ``try_resolve_timestamp`` exposes the same logic but
returns ``None`` so callers can count fallbacks.
"""

from __future__ import annotations

import re
import time
from datetime import datetime
from typing import List, Optional

__all__ = [
    "DATE_SEPARATORS",
    "resolve_datetime",
    "resolve_timestamp",
    "to_millis",
    "try_resolve_timestamp",
]

DATE_SEPARATORS = ("/", "-", ".")

_MERIDIEM_RE = re.compile(r"\s*([AP])\.?M\.?\s*$", re.IGNORECASE)


def _split_date(date_token: str) -> Optional[List[int]]:
    for sep in DATE_SEPARATORS:
        if sep in date_token:
            parts = date_token.split(sep)
            break
    else:
        return None
    if len(parts) != 3:
        return None
    try:
        return [int(p) for p in parts]
    except ValueError:
        return None


def _order_date_parts(first: int, second: int, third: int) -> tuple[int, int, int]:
    """Return (year, month, day) for the three raw parts."""
    if first > 12:
        day, month = first, second
    elif second > 12:
        month, day = first, second
    else:
        day, month = first, second
    year = third
    if year < 100:
        year += 2000 if year < 50 else 1900
    return year, month, day


def _parse_time(time_token: str) -> Optional[tuple[int, int, int]]:
    token = time_token.strip()
    meridiem = None
    m = _MERIDIEM_RE.search(token)
    if m:
        meridiem = m.group(1).upper()
        token = token[: m.start()]
    parts = token.strip().split(":")
    if len(parts) < 2:
        return None
    try:
        hour = int(parts[0])
        minute = int(parts[1])
        second = int(parts[2]) if len(parts) > 2 else 0
    except ValueError:
        return None
    if meridiem == "P" and hour < 12:
        hour += 12
    elif meridiem == "A" and hour == 12:
        hour = 0
    return hour, minute, second


def resolve_datetime(date_token: str, time_token: str) -> Optional[datetime]:
    """Resolve tokens to a naive local ``datetime`` or ``None`` if unusable."""
    parts = _split_date(date_token.strip())
    if parts is None:
        return None
    clock = _parse_time(time_token)
    if clock is None:
        return None
    year, month, day = _order_date_parts(*parts)
    try:
        return datetime(year, month, day, *clock)
    except (ValueError, OverflowError):
        return None


def to_millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def try_resolve_timestamp(date_token: str, time_token: str) -> Optional[int]:
    """Milliseconds since the epoch, or ``None`` when the tokens are unusable."""
    resolved = resolve_datetime(date_token, time_token)
    if resolved is None:
        return None
    try:
        return to_millis(resolved)
    except (OverflowError, OSError, ValueError):
        # Platform mktime limits for far-out years
        return None


def resolve_timestamp(date_token: str, time_token: str) -> int:
    """Return milliseconds since the epoch, or the current instant on failure."""
    millis = try_resolve_timestamp(date_token, time_token)
    if millis is None:
        return int(time.time() * 1000)
    return millis
