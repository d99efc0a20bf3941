"""Archived period summaries and the per-user reset checkpoint."""

from __future__ import annotations

from sqlalchemy import Column, Integer, Text

from ..db.session import Base


class PeriodSummary(Base):
    """Frozen totals of one closed period. Rows are inserted or deleted, never updated."""

    __tablename__ = "period_summaries"

    id = Column(Text, primary_key=True)
    user_id = Column(Text, nullable=False, index=True)
    start_date = Column(Text, nullable=False)
    end_date = Column(Text, nullable=False)
    reset_date = Column(Text, nullable=False)
    total_hours = Column(Text, nullable=False)
    total_kilometers = Column(Integer, nullable=False)
    created_at = Column(Text, nullable=False, index=True)


class UserSettings(Base):
    __tablename__ = "user_settings"

    user_id = Column(Text, primary_key=True)
    last_reset_at = Column(Text, nullable=True)


__all__ = ["PeriodSummary", "UserSettings"]
