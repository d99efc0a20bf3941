"""Storage backends for entries, period summaries and the reset checkpoint.

``EntryRepository`` is the contract the work log service relies on. Two
implementations ship with the app:

* ``SqlRepository`` keeps everything in the relational database through a
  SQLAlchemy session. It can also queue each entry change for the remote
  sync pass.
* ``MemoryRepository`` keeps everything in process memory, handy for a
  throwaway local instance and for tests.

Both are constructed per request and scoped to a single user id.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .core.errors import PersistenceError
from .crud import entries as entry_crud
from .crud import periods as period_crud
from .crud.sync import enqueue_change
from .models.entry import WorkEntry
from .models.period import PeriodSummary
from .services.periods import SummaryDraft, as_utc

logger = logging.getLogger(__name__)


class EntryRepository(Protocol):
    user_id: str

    def list_entries(self) -> list[WorkEntry]: ...

    def get_entry(self, entry_id: str) -> Optional[WorkEntry]: ...

    def get_entry_by_date(self, day: str) -> Optional[WorkEntry]: ...

    def save_entry(self, entry: WorkEntry, *, created: bool) -> WorkEntry: ...

    def delete_entry(self, entry_id: str) -> bool: ...

    def list_summaries(self) -> list[PeriodSummary]: ...

    def get_summary(self, summary_id: str) -> Optional[PeriodSummary]: ...

    def add_summary(self, draft: SummaryDraft) -> PeriodSummary: ...

    def delete_summary(self, summary_id: str) -> bool: ...

    def get_checkpoint(self) -> Optional[datetime]: ...

    def set_checkpoint(self, moment: datetime) -> None: ...

    def transaction(self): ...


class SqlRepository:
    def __init__(self, db: Session, user_id: str, *, sync_enabled: bool = False) -> None:
        self.db = db
        self.user_id = user_id
        self.sync_enabled = sync_enabled
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator["SqlRepository"]:
        """Group writes: they are committed together or rolled back together."""
        self._depth += 1
        try:
            yield self
            if self._depth == 1:
                self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("transaction rolled back for user %s", self.user_id, exc_info=True)
            raise PersistenceError("The change could not be saved") from exc
        except Exception:
            self.db.rollback()
            raise
        finally:
            self._depth -= 1

    def _write(self):
        # Stand-alone writes get their own transaction.
        return self.transaction()

    def list_entries(self) -> list[WorkEntry]:
        return entry_crud.list_entries(self.db, self.user_id)

    def get_entry(self, entry_id: str) -> Optional[WorkEntry]:
        return entry_crud.get_entry(self.db, self.user_id, entry_id)

    def get_entry_by_date(self, day: str) -> Optional[WorkEntry]:
        return entry_crud.get_entry_by_date(self.db, self.user_id, day)

    def save_entry(self, entry: WorkEntry, *, created: bool) -> WorkEntry:
        with self._write():
            entry.user_id = self.user_id
            if created:
                entry_crud.add_entry(self.db, entry)
            else:
                self.db.flush()
            if self.sync_enabled:
                enqueue_change(self.db, self.user_id, "add" if created else "update", entry_crud.entry_to_dict(entry))
        return entry

    def delete_entry(self, entry_id: str) -> bool:
        entry = self.get_entry(entry_id)
        if entry is None:
            return False
        with self._write():
            entry_crud.delete_entry(self.db, entry)
            if self.sync_enabled:
                enqueue_change(self.db, self.user_id, "delete", {"id": entry_id})
        return True

    def list_summaries(self) -> list[PeriodSummary]:
        return period_crud.list_summaries(self.db, self.user_id)

    def get_summary(self, summary_id: str) -> Optional[PeriodSummary]:
        return period_crud.get_summary(self.db, self.user_id, summary_id)

    def add_summary(self, draft: SummaryDraft) -> PeriodSummary:
        with self._write():
            summary = period_crud.add_summary(self.db, period_crud.summary_from_draft(self.user_id, draft))
        return summary

    def delete_summary(self, summary_id: str) -> bool:
        summary = self.get_summary(summary_id)
        if summary is None:
            return False
        with self._write():
            period_crud.delete_summary(self.db, summary)
        return True

    def get_checkpoint(self) -> Optional[datetime]:
        return period_crud.get_checkpoint(self.db, self.user_id)

    def set_checkpoint(self, moment: datetime) -> None:
        with self._write():
            period_crud.set_checkpoint(self.db, self.user_id, moment)


def _detached_copy(row):
    clone = type(row)()
    for column in row.__table__.columns:
        setattr(clone, column.key, getattr(row, column.key))
    return clone


class MemoryRepository:
    """Process-local storage. Reads hand out copies so callers cannot edit stored rows.

    One instance serves every request for its user, so writes and
    transactions hold a reentrant lock.
    """

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        self._entries: dict[str, WorkEntry] = {}
        self._summaries: dict[str, PeriodSummary] = {}
        self._checkpoint: Optional[datetime] = None
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator["MemoryRepository"]:
        with self._lock:
            snapshot = (dict(self._entries), dict(self._summaries), self._checkpoint)
            try:
                yield self
            except Exception:
                self._entries, self._summaries, self._checkpoint = snapshot
                raise

    def list_entries(self) -> list[WorkEntry]:
        with self._lock:
            rows = sorted(self._entries.values(), key=lambda row: row.date, reverse=True)
        return [_detached_copy(row) for row in rows]

    def get_entry(self, entry_id: str) -> Optional[WorkEntry]:
        row = self._entries.get(entry_id)
        return _detached_copy(row) if row is not None else None

    def get_entry_by_date(self, day: str) -> Optional[WorkEntry]:
        with self._lock:
            for row in self._entries.values():
                if row.date == day:
                    return _detached_copy(row)
        return None

    def save_entry(self, entry: WorkEntry, *, created: bool) -> WorkEntry:
        entry.user_id = self.user_id
        with self._lock:
            clash = next(
                (row for row in self._entries.values() if row.date == entry.date and row.id != entry.id),
                None,
            )
            if clash is not None:
                raise PersistenceError(f"An entry for {entry.date} already exists")
            self._entries[entry.id] = _detached_copy(entry)
        return entry

    def delete_entry(self, entry_id: str) -> bool:
        with self._lock:
            return self._entries.pop(entry_id, None) is not None

    def list_summaries(self) -> list[PeriodSummary]:
        with self._lock:
            rows = sorted(self._summaries.values(), key=lambda row: row.created_at, reverse=True)
        return [_detached_copy(row) for row in rows]

    def get_summary(self, summary_id: str) -> Optional[PeriodSummary]:
        row = self._summaries.get(summary_id)
        return _detached_copy(row) if row is not None else None

    def add_summary(self, draft: SummaryDraft) -> PeriodSummary:
        summary = period_crud.summary_from_draft(self.user_id, draft)
        with self._lock:
            self._summaries[summary.id] = summary
        return _detached_copy(summary)

    def delete_summary(self, summary_id: str) -> bool:
        with self._lock:
            return self._summaries.pop(summary_id, None) is not None

    def get_checkpoint(self) -> Optional[datetime]:
        return self._checkpoint

    def set_checkpoint(self, moment: datetime) -> None:
        with self._lock:
            self._checkpoint = as_utc(moment)


__all__ = ["EntryRepository", "MemoryRepository", "SqlRepository"]
