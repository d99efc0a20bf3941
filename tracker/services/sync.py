"""Push queued entry changes to the remote store.

A drain pass walks the queue oldest first and stops at the first failure so
changes are delivered in the order they were made. Failed items stay queued
and are retried by the next pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

import httpx
from sqlalchemy.orm import Session

from ..core.config import settings
from ..crud.sync import count_pending, list_pending, mark_failed, mark_sent

logger = logging.getLogger(__name__)

Pusher = Callable[[dict[str, Any]], None]


class SyncNotConfigured(Exception):
    """Raised when a drain is requested without a remote URL."""


@dataclass(frozen=True)
class SyncReport:
    sent: int
    failed: int
    remaining: int
    last_error: str | None = None


def http_pusher(url: str | None = None, timeout: float | None = None) -> Pusher:
    target = (url if url is not None else settings.SYNC_REMOTE_URL).strip()
    if not target:
        raise SyncNotConfigured("SYNC_REMOTE_URL is not set")
    headers = {"Accept": "application/json"}
    if settings.API_KEY:
        headers["X-API-Key"] = settings.API_KEY

    def push(message: dict[str, Any]) -> None:
        response = httpx.post(
            target,
            json=message,
            headers=headers,
            timeout=timeout if timeout is not None else settings.SYNC_TIMEOUT,
        )
        response.raise_for_status()

    return push


def drain_sync_queue(db: Session, push: Pusher, user_id: str | None = None) -> SyncReport:
    sent = 0
    failed = 0
    last_error = None
    for item in list_pending(db, user_id=user_id):
        try:
            push(item.as_message())
        except (httpx.HTTPError, OSError) as exc:
            failed = 1
            last_error = str(exc) or exc.__class__.__name__
            mark_failed(db, item, last_error)
            logger.warning("sync push failed for item %s: %s", item.id, last_error)
            break
        mark_sent(db, item)
        sent += 1
    remaining = count_pending(db, user_id=user_id)
    logger.info(
        "sync.drained",
        extra={"extra_data": {"sent": sent, "failed": failed, "remaining": remaining}},
    )
    return SyncReport(sent=sent, failed=failed, remaining=remaining, last_error=last_error)
