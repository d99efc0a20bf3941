"""Billing period accounting.

Entries belong to the *current* period when they were added after the last
reset checkpoint (or when no reset ever happened). Closing a period freezes
the current totals into a summary and moves the checkpoint to "now". All
functions here are pure: they read the values they are given and never touch
storage, so callers decide how and when the results are persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Optional
from uuid import uuid4

HOUR_PLACES = Decimal("0.01")
NO_ENTRIES = "No entries"


@dataclass(frozen=True)
class PeriodTotals:
    total_hours: Decimal = Decimal("0.00")
    total_kilometers: int = 0


@dataclass(frozen=True)
class SummaryDraft:
    """A period summary computed at close time, not yet persisted."""

    start_date: str
    end_date: str
    reset_date: str
    total_hours: Decimal
    total_kilometers: int
    id: str = field(default_factory=lambda: uuid4().hex)


@dataclass(frozen=True)
class PeriodClose:
    summary: Optional[SummaryDraft]
    new_checkpoint: datetime


def _to_decimal(value: Any) -> Decimal:
    """Best-effort conversion of stored hour values to Decimal."""

    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    if isinstance(value, (int, float)):
        return Decimal(str(value))
    if isinstance(value, str):
        cleaned = value.strip()
        if not cleaned:
            return Decimal("0")
        try:
            return Decimal(cleaned)
        except InvalidOperation:
            return Decimal("0")
    return Decimal("0")


def as_utc(value: Any) -> datetime | None:
    """Normalize a datetime or ISO-8601 string to an aware UTC datetime.

    Naive values are taken to be UTC, which is how timestamps are stored.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    else:
        raise TypeError(f"Unsupported timestamp value: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise TypeError(f"Unsupported date value: {value!r}")


def format_long_date(value: Any) -> str:
    """``April 5, 2025``"""
    day = as_date(value)
    return f"{day:%B} {day.day}, {day.year}"


def format_reset_stamp(moment: datetime, tz: tzinfo | None = None) -> str:
    """``April 5, 2025 at 3:04 PM`` in ``tz`` (or the moment's own zone)."""
    local = moment.astimezone(tz) if tz is not None else moment
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{format_long_date(local)} at {hour}:{local.minute:02d} {meridiem}"


def is_current(entry: Any, checkpoint: Any) -> bool:
    cutoff = as_utc(checkpoint)
    if cutoff is None:
        return True
    added_at = as_utc(entry.added_at)
    return added_at is not None and added_at > cutoff


def current_entries(entries: Iterable[Any], checkpoint: Any) -> list[Any]:
    return [entry for entry in entries if is_current(entry, checkpoint)]


def aggregate(entries: Iterable[Any], checkpoint: Any) -> PeriodTotals:
    """Sum hours and kilometers over the entries of the current period."""

    hours = Decimal("0")
    kilometers = 0
    for entry in current_entries(entries, checkpoint):
        hours += _to_decimal(entry.hours_worked)
        kilometers += int(entry.kilometers or 0)
    return PeriodTotals(
        total_hours=hours.quantize(HOUR_PLACES, rounding=ROUND_HALF_UP),
        total_kilometers=kilometers,
    )


def period_bounds(entries: Iterable[Any], checkpoint: Any) -> tuple[str, str]:
    """First and last work date of the current period, formatted for display."""

    days = [as_date(entry.date) for entry in current_entries(entries, checkpoint)]
    if not days:
        return NO_ENTRIES, NO_ENTRIES
    return format_long_date(min(days)), format_long_date(max(days))


def close_period(
    entries: Iterable[Any],
    checkpoint: Any,
    now: datetime,
    tz: tzinfo | None = None,
) -> PeriodClose:
    """Compute the outcome of a reset at ``now``.

    A summary is produced only when the period has hours to report. The new
    checkpoint is ``now`` either way; the caller must persist the summary
    before committing the checkpoint.
    """
    rows = list(entries)
    totals = aggregate(rows, checkpoint)
    moment = as_utc(now)
    summary = None
    if totals.total_hours > 0:
        start_label, end_label = period_bounds(rows, checkpoint)
        summary = SummaryDraft(
            start_date=start_label,
            end_date=end_label,
            reset_date=format_reset_stamp(moment, tz),
            total_hours=totals.total_hours,
            total_kilometers=totals.total_kilometers,
        )
    return PeriodClose(summary=summary, new_checkpoint=moment)


__all__ = [
    "NO_ENTRIES",
    "PeriodClose",
    "PeriodTotals",
    "SummaryDraft",
    "aggregate",
    "as_date",
    "as_utc",
    "close_period",
    "current_entries",
    "format_long_date",
    "format_reset_stamp",
    "is_current",
    "period_bounds",
]
