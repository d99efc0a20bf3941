"""Work log operations: record a day, drop a day, read totals, close a period.

Every function takes the repository to work against and, where time matters,
the current instant, so nothing here depends on a global client or clock.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Optional
from uuid import uuid4
from zoneinfo import ZoneInfo

from ..core.config import settings
from ..core.errors import ConfirmationRequired, InvalidEntryError, NotFound
from ..models.entry import WorkEntry
from ..models.period import PeriodSummary
from ..repository import EntryRepository
from .distance import resolve_distance
from .periods import (
    PeriodClose,
    PeriodTotals,
    aggregate,
    as_date,
    as_utc,
    close_period,
    is_current,
    period_bounds,
)
from .timecalc import compute_hours, format_clock

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def display_tz() -> ZoneInfo | None:
    return ZoneInfo(settings.TZ) if settings.TZ else None


@dataclass(frozen=True)
class CurrentPeriod:
    totals: PeriodTotals
    start_date: str
    end_date: str
    checkpoint: Optional[datetime]
    entry_count: int


@dataclass(frozen=True)
class ResetOutcome:
    summary: Optional[PeriodSummary]
    checkpoint: datetime


def record_entry(
    repo: EntryRepository,
    *,
    day: date | str | None,
    start_time: Optional[str],
    end_time: Optional[str],
    location: Optional[str],
    now: Optional[datetime] = None,
) -> tuple[WorkEntry, bool]:
    """Store the work done on ``day``, replacing that day's entry if one exists.

    Returns ``(entry, created)``. A replaced entry keeps its id and
    ``added_at`` so editing never moves it into another period.
    """
    if day is None or day == "":
        raise InvalidEntryError("Please select a date")
    try:
        day_key = as_date(day).isoformat()
    except (TypeError, ValueError) as exc:
        raise InvalidEntryError(f"Invalid date: {day!r}") from exc
    if not (start_time or "").strip() or not (end_time or "").strip():
        raise InvalidEntryError("Start and end times are required")
    location = (location or "").strip()
    if not location:
        raise InvalidEntryError("A location is required")
    try:
        hours = compute_hours(start_time, end_time)
        start_clock, end_clock = format_clock(start_time), format_clock(end_time)
    except ValueError as exc:
        raise InvalidEntryError(str(exc)) from exc
    if hours <= 0:
        raise InvalidEntryError("End time must be after start time")

    stamp = as_utc(now or utcnow()).isoformat()
    existing = repo.get_entry_by_date(day_key)
    created = existing is None
    if created:
        entry = WorkEntry(id=uuid4().hex, user_id=repo.user_id, date=day_key, added_at=stamp)
    else:
        entry = existing
    entry.start_time = start_clock
    entry.end_time = end_clock
    entry.hours_worked = format(hours, "f")
    entry.location = location
    entry.kilometers = resolve_distance(location)
    entry.updated_at = stamp

    with repo.transaction():
        saved = repo.save_entry(entry, created=created)
    logger.info(
        "entry.saved",
        extra={"extra_data": {"entry_id": saved.id, "date": day_key, "created": created, "hours": entry.hours_worked}},
    )
    return saved, created


def remove_entry(repo: EntryRepository, entry_id: str) -> None:
    if not repo.delete_entry(entry_id):
        raise NotFound("Entry not found")
    logger.info("entry.deleted", extra={"extra_data": {"entry_id": entry_id}})


def entries_with_flags(repo: EntryRepository) -> list[tuple[WorkEntry, bool]]:
    checkpoint = repo.get_checkpoint()
    return [(entry, is_current(entry, checkpoint)) for entry in repo.list_entries()]


def current_period(repo: EntryRepository) -> CurrentPeriod:
    """Totals are recomputed from storage on every call."""
    entries = repo.list_entries()
    checkpoint = repo.get_checkpoint()
    totals = aggregate(entries, checkpoint)
    start_label, end_label = period_bounds(entries, checkpoint)
    return CurrentPeriod(
        totals=totals,
        start_date=start_label,
        end_date=end_label,
        checkpoint=checkpoint,
        entry_count=sum(1 for entry in entries if is_current(entry, checkpoint)),
    )


def reset_period(
    repo: EntryRepository,
    *,
    confirmed: bool,
    now: Optional[datetime] = None,
) -> ResetOutcome:
    """Close the current period.

    The summary (when there are hours to report) and the new checkpoint are
    written in one transaction: if the summary cannot be stored the
    checkpoint stays where it was.
    """
    if not confirmed:
        raise ConfirmationRequired(
            "Resetting the totals starts a new period; confirm to continue",
        )
    outcome: PeriodClose = close_period(
        repo.list_entries(),
        repo.get_checkpoint(),
        now or utcnow(),
        tz=display_tz(),
    )
    stored = None
    with repo.transaction():
        if outcome.summary is not None:
            stored = repo.add_summary(outcome.summary)
        repo.set_checkpoint(outcome.new_checkpoint)
    logger.info(
        "period.reset",
        extra={
            "extra_data": {
                "summary_id": stored.id if stored is not None else None,
                "checkpoint": outcome.new_checkpoint.isoformat(),
            }
        },
    )
    return ResetOutcome(summary=stored, checkpoint=outcome.new_checkpoint)


def remove_summary(repo: EntryRepository, summary_id: str) -> None:
    if not repo.delete_summary(summary_id):
        raise NotFound("Period summary not found")
    logger.info("period.deleted", extra={"extra_data": {"summary_id": summary_id}})


def require_summary(repo: EntryRepository, summary_id: str) -> PeriodSummary:
    summary = repo.get_summary(summary_id)
    if summary is None:
        raise NotFound("Period summary not found")
    return summary


def require_entry(repo: EntryRepository, entry_id: str) -> WorkEntry:
    entry = repo.get_entry(entry_id)
    if entry is None:
        raise NotFound("Entry not found")
    return entry


__all__ = [
    "Clock",
    "CurrentPeriod",
    "ResetOutcome",
    "current_period",
    "entries_with_flags",
    "record_entry",
    "remove_entry",
    "remove_summary",
    "require_entry",
    "require_summary",
    "reset_period",
    "utcnow",
]
