from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..core.config import settings
from ..crud.sync import count_pending
from ..db.session import get_db
from ..deps.auth import AuthContext, require_api_key
from ..schemas.sync import SyncDrainResponse, SyncStatus
from ..services.sync import Pusher, SyncNotConfigured, drain_sync_queue, http_pusher

router = APIRouter(prefix="/api/v1/sync", tags=["sync"])


def get_pusher() -> Pusher:
    try:
        return http_pusher()
    except SyncNotConfigured as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.get("/status", response_model=SyncStatus)
def api_status(auth: AuthContext = Depends(require_api_key), db: Session = Depends(get_db)):
    return SyncStatus(enabled=settings.sync_enabled, pending=count_pending(db, user_id=auth.user_id))


@router.post("/drain", response_model=SyncDrainResponse)
def api_drain(
    auth: AuthContext = Depends(require_api_key),
    db: Session = Depends(get_db),
    push: Pusher = Depends(get_pusher),
):
    report = drain_sync_queue(db, push, user_id=auth.user_id)
    return SyncDrainResponse(
        sent=report.sent,
        failed=report.failed,
        remaining=report.remaining,
        last_error=report.last_error,
    )
