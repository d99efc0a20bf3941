"""Domain exceptions and the JSON error envelope returned by the API."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class TrackerError(Exception):
    """Base class for failures the API reports to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "tracker_error"

    def __init__(self, message: str, *, details: Any | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidEntryError(TrackerError, ValueError):
    """Input that cannot become a work entry (bad times, missing date...)."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "invalid_entry"


class ConfirmationRequired(TrackerError):
    """A destructive operation was requested without explicit confirmation."""

    status_code = status.HTTP_409_CONFLICT
    code = "confirmation_required"


class NotFound(TrackerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class PersistenceError(TrackerError):
    """The repository rejected a write; nothing from the operation was kept."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "persistence_error"


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"code": code, "message": message}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def tracker_exception_handler(request: Request, exc: TrackerError):
    if isinstance(exc, PersistenceError):
        logger.error("persistence failure on %s %s: %s", request.method, request.url.path, exc.message)
    return ErrorEnvelope(
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    if isinstance(detail, str):
        message = detail
    else:
        message = "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        code="validation_error",
        message="Validation failed",
        details={"errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    # ctx may carry the raw exception object, which json cannot encode
    cleaned: list[dict[str, Any]] = []
    for error in exc.errors():
        item = {key: value for key, value in error.items() if key not in {"ctx", "url"}}
        cleaned.append(item)
    return cleaned
