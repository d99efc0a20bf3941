from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class SyncStatus(BaseModel):
    enabled: bool
    pending: int


class SyncDrainResponse(BaseModel):
    sent: int
    failed: int
    remaining: int
    last_error: Optional[str] = None
