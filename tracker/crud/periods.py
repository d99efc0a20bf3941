from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..models.period import PeriodSummary, UserSettings
from ..services.periods import SummaryDraft, as_utc


def _utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def list_summaries(db: Session, user_id: str) -> list[PeriodSummary]:
    stmt = (
        select(PeriodSummary)
        .where(PeriodSummary.user_id == user_id)
        .order_by(desc(PeriodSummary.created_at))
    )
    return list(db.execute(stmt).scalars().all())


def get_summary(db: Session, user_id: str, summary_id: str) -> PeriodSummary | None:
    summary = db.get(PeriodSummary, summary_id)
    if summary is None or summary.user_id != user_id:
        return None
    return summary


def summary_from_draft(user_id: str, draft: SummaryDraft, created_at: str | None = None) -> PeriodSummary:
    return PeriodSummary(
        id=draft.id,
        user_id=user_id,
        start_date=draft.start_date,
        end_date=draft.end_date,
        reset_date=draft.reset_date,
        total_hours=format(draft.total_hours, "f"),
        total_kilometers=int(draft.total_kilometers),
        created_at=created_at or _utcnow(),
    )


def add_summary(db: Session, summary: PeriodSummary) -> PeriodSummary:
    db.add(summary)
    db.flush()
    return summary


def delete_summary(db: Session, summary: PeriodSummary) -> None:
    db.delete(summary)
    db.flush()


def get_checkpoint(db: Session, user_id: str) -> datetime | None:
    row = db.get(UserSettings, user_id)
    if row is None:
        return None
    return as_utc(row.last_reset_at)


def set_checkpoint(db: Session, user_id: str, moment: datetime) -> None:
    row = db.get(UserSettings, user_id)
    if row is None:
        row = UserSettings(user_id=user_id)
        db.add(row)
    row.last_reset_at = as_utc(moment).isoformat()
    db.flush()
