from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from ..deps.auth import require_api_key
from ..deps.storage import get_clock, get_repository
from ..repository import EntryRepository
from ..schemas.entry import EntryCreate, EntryOut
from ..services.periods import is_current
from ..services.worklog import Clock, entries_with_flags, record_entry, remove_entry, require_entry

router = APIRouter(prefix="/api/v1/entries", tags=["entries"], dependencies=[Depends(require_api_key)])


def _serialize_entry(entry, current: bool) -> EntryOut:
    payload = EntryOut.model_validate(entry, from_attributes=True)
    payload.current = current
    return payload


@router.get("", response_model=list[EntryOut])
def api_list(repo: EntryRepository = Depends(get_repository)):
    return [_serialize_entry(entry, current) for entry, current in entries_with_flags(repo)]


@router.get("/{entry_id}", response_model=EntryOut)
def api_get(entry_id: str, repo: EntryRepository = Depends(get_repository)):
    entry = require_entry(repo, entry_id)
    return _serialize_entry(entry, is_current(entry, repo.get_checkpoint()))


@router.post("", response_model=EntryOut, status_code=status.HTTP_201_CREATED)
def api_upsert(
    payload: EntryCreate,
    response: Response,
    repo: EntryRepository = Depends(get_repository),
    clock: Clock = Depends(get_clock),
):
    entry, created = record_entry(
        repo,
        day=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        location=payload.location,
        now=clock(),
    )
    if not created:
        response.status_code = status.HTTP_200_OK
    return _serialize_entry(entry, is_current(entry, repo.get_checkpoint()))


@router.delete("/{entry_id}")
def api_delete(entry_id: str, repo: EntryRepository = Depends(get_repository)):
    remove_entry(repo, entry_id)
    return {"status": "deleted"}
