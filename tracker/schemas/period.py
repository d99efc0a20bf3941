"""Schemas for the running period and archived period summaries."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class PeriodSummaryOut(BaseModel):
    id: str
    start_date: str
    end_date: str
    reset_date: str
    total_hours: float
    total_kilometers: int
    created_at: str

    class Config:
        from_attributes = True


class CurrentPeriodOut(BaseModel):
    total_hours: float
    total_kilometers: int
    start_date: str
    end_date: str
    last_reset_at: Optional[str] = None
    entry_count: int


class ResetRequest(BaseModel):
    confirm: bool = False

    model_config = {
        "json_schema_extra": {
            "example": {"confirm": True}
        }
    }


class ResetResponse(BaseModel):
    summary: Optional[PeriodSummaryOut] = None
    last_reset_at: str
