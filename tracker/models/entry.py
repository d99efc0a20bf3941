"""SQLAlchemy model for one calendar day of recorded work."""

from __future__ import annotations

from sqlalchemy import Column, Integer, Text, UniqueConstraint

from ..db.session import Base


class WorkEntry(Base):
    __tablename__ = "work_entries"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_work_entries_user_date"),)

    id = Column(Text, primary_key=True)
    user_id = Column(Text, nullable=False, index=True)
    # YYYY-MM-DD; at most one row per user and day
    date = Column(Text, nullable=False, index=True)
    start_time = Column(Text, nullable=False)
    end_time = Column(Text, nullable=False)
    hours_worked = Column(Text, nullable=False)
    location = Column(Text, nullable=False)
    kilometers = Column(Integer, nullable=False, default=0)
    # Period membership is decided by added_at, never by date.
    added_at = Column(Text, nullable=False, index=True)
    updated_at = Column(Text, nullable=True)


__all__ = ["WorkEntry"]
