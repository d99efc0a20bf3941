from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..models.sync import SYNC_ACTIONS, SyncItem


def enqueue_change(db: Session, user_id: str, action: str, payload: dict[str, Any], entity: str = "entry") -> SyncItem:
    if action not in SYNC_ACTIONS:
        raise ValueError(f"Unknown sync action '{action}'")
    item = SyncItem(
        user_id=user_id,
        action=action,
        entity=entity,
        created_at=datetime.now(timezone.utc).isoformat(),
        attempts=0,
    )
    item.payload = payload
    db.add(item)
    db.flush()
    return item


def list_pending(db: Session, user_id: str | None = None, limit: int = 500) -> list[SyncItem]:
    stmt = select(SyncItem)
    if user_id:
        stmt = stmt.where(SyncItem.user_id == user_id)
    stmt = stmt.order_by(SyncItem.id).limit(limit)
    return list(db.execute(stmt).scalars().all())


def count_pending(db: Session, user_id: str | None = None) -> int:
    stmt = select(func.count()).select_from(SyncItem)
    if user_id:
        stmt = stmt.where(SyncItem.user_id == user_id)
    return db.scalar(stmt) or 0


def mark_sent(db: Session, item: SyncItem) -> None:
    db.delete(item)
    db.commit()


def mark_failed(db: Session, item: SyncItem, error: str) -> None:
    item.attempts = (item.attempts or 0) + 1
    item.last_error = error[:500]
    db.commit()
