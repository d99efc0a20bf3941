from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from ..core.config import settings
from ..deps.auth import require_api_key
from ..deps.storage import get_clock, get_repository
from ..repository import EntryRepository
from ..schemas.period import CurrentPeriodOut, PeriodSummaryOut, ResetRequest, ResetResponse
from ..services.period_export import render_period_summary_pdf
from ..services.worklog import Clock, current_period, remove_summary, require_summary, reset_period

router = APIRouter(prefix="/api/v1/periods", tags=["periods"], dependencies=[Depends(require_api_key)])


@router.get("/current", response_model=CurrentPeriodOut)
def api_current(repo: EntryRepository = Depends(get_repository)):
    period = current_period(repo)
    return CurrentPeriodOut(
        total_hours=float(period.totals.total_hours),
        total_kilometers=period.totals.total_kilometers,
        start_date=period.start_date,
        end_date=period.end_date,
        last_reset_at=period.checkpoint.isoformat() if period.checkpoint else None,
        entry_count=period.entry_count,
    )


@router.post("/reset", response_model=ResetResponse)
def api_reset(
    payload: ResetRequest,
    repo: EntryRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    outcome = reset_period(repo, confirmed=payload.confirm, now=clock())
    summary = None
    if outcome.summary is not None:
        summary = PeriodSummaryOut.model_validate(outcome.summary, from_attributes=True)
    return ResetResponse(summary=summary, last_reset_at=outcome.checkpoint.isoformat())


@router.get("", response_model=list[PeriodSummaryOut])
def api_list(repo: EntryRepository = Depends(get_repository)):
    return [PeriodSummaryOut.model_validate(row, from_attributes=True) for row in repo.list_summaries()]


@router.get("/{summary_id}", response_model=PeriodSummaryOut)
def api_get(summary_id: str, repo: EntryRepository = Depends(get_repository)):
    return PeriodSummaryOut.model_validate(require_summary(repo, summary_id), from_attributes=True)


@router.get("/{summary_id}/pdf", response_class=Response)
def api_pdf(summary_id: str, repo: EntryRepository = Depends(get_repository)):
    summary = require_summary(repo, summary_id)
    pdf_bytes = render_period_summary_pdf(summary, owner=settings.OWNER_NAME)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="period-{summary.id}.pdf"'},
    )


@router.delete("/{summary_id}")
def api_delete(summary_id: str, repo: EntryRepository = Depends(get_repository)):
    remove_summary(repo, summary_id)
    return {"status": "deleted"}
