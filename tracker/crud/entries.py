from __future__ import annotations

from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..models.entry import WorkEntry

ENTRY_FIELDS = (
    "id",
    "user_id",
    "date",
    "start_time",
    "end_time",
    "hours_worked",
    "location",
    "kilometers",
    "added_at",
    "updated_at",
)


def entry_to_dict(entry: WorkEntry) -> dict[str, Any]:
    return {name: getattr(entry, name) for name in ENTRY_FIELDS}


def list_entries(db: Session, user_id: str) -> list[WorkEntry]:
    stmt = (
        select(WorkEntry)
        .where(WorkEntry.user_id == user_id)
        .order_by(desc(WorkEntry.date))
    )
    return list(db.execute(stmt).scalars().all())


def get_entry(db: Session, user_id: str, entry_id: str) -> WorkEntry | None:
    entry = db.get(WorkEntry, entry_id)
    if entry is None or entry.user_id != user_id:
        return None
    return entry


def get_entry_by_date(db: Session, user_id: str, day: str) -> WorkEntry | None:
    stmt = select(WorkEntry).where(WorkEntry.user_id == user_id, WorkEntry.date == day)
    return db.execute(stmt).scalars().first()


def add_entry(db: Session, entry: WorkEntry) -> WorkEntry:
    db.add(entry)
    db.flush()
    return entry


def delete_entry(db: Session, entry: WorkEntry) -> None:
    db.delete(entry)
    db.flush()
