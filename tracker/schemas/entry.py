"""Pydantic schemas for work entry payloads."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field


class EntryCreate(BaseModel):
    # All optional here so a missing field is reported as an invalid entry, not a schema error.
    date: Optional[dt.date] = None
    start_time: Optional[str] = Field(default=None, examples=["09:00"])
    end_time: Optional[str] = Field(default=None, examples=["17:00"])
    location: Optional[str] = Field(default=None, examples=["Brakel 18km", "Gent 50km"])


class EntryOut(BaseModel):
    id: str
    date: str
    start_time: str
    end_time: str
    hours_worked: float
    location: str
    kilometers: int
    added_at: str
    updated_at: Optional[str] = None
    current: bool = True

    class Config:
        from_attributes = True
