"""Per-request wiring of the storage backend and the clock."""

from __future__ import annotations

import threading

from fastapi import Depends
from sqlalchemy.orm import Session

from ..core.config import settings
from ..db.session import get_db
from ..repository import EntryRepository, MemoryRepository, SqlRepository
from ..services.worklog import Clock, utcnow
from .auth import AuthContext, require_api_key

# Memory backend: one store per user for the life of the process.
_memory_stores: dict[str, MemoryRepository] = {}
_memory_stores_lock = threading.Lock()


def get_repository(
    auth: AuthContext = Depends(require_api_key),
    db: Session = Depends(get_db),
) -> EntryRepository:
    if settings.STORAGE_BACKEND == "memory":
        with _memory_stores_lock:
            if auth.user_id not in _memory_stores:
                _memory_stores[auth.user_id] = MemoryRepository(auth.user_id)
            return _memory_stores[auth.user_id]
    return SqlRepository(db, auth.user_id, sync_enabled=settings.sync_enabled)


def get_clock() -> Clock:
    return utcnow
