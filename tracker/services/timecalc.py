from __future__ import annotations

import re
from decimal import Decimal, ROUND_HALF_UP

CLOCK_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
HOUR_PLACES = Decimal("0.01")
SIXTY = Decimal(60)


def parse_clock(value: str) -> tuple[int, int]:
    """Split an ``HH:MM`` 24-hour wall-clock string into (hour, minute)."""
    match = CLOCK_RE.match(value or "")
    if not match:
        raise ValueError(f"Expected a time formatted HH:MM, got {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if not 0 <= hour <= 23:
        raise ValueError(f"Hour must be between 0 and 23, got {hour}")
    if not 0 <= minute <= 59:
        raise ValueError(f"Minute must be between 0 and 59, got {minute}")
    return hour, minute


def format_clock(value: str) -> str:
    """Canonical zero-padded ``HH:MM`` form of a wall-clock string."""
    hour, minute = parse_clock(value)
    return f"{hour:02d}:{minute:02d}"


def compute_hours(start: str, end: str) -> Decimal:
    """
    Hours between two same-day wall-clock times, rounded half-up to 2 places.

    There is no midnight wrap: an ``end`` at or before ``start`` yields zero
    or a negative number and callers must treat that as invalid input.
    """
    start_hour, start_minute = parse_clock(start)
    end_hour, end_minute = parse_clock(end)
    hours = end_hour - start_hour
    minutes = end_minute - start_minute
    if minutes < 0:
        hours -= 1
        minutes += 60
    total = Decimal(hours) + Decimal(minutes) / SIXTY
    return total.quantize(HOUR_PLACES, rounding=ROUND_HALF_UP)
