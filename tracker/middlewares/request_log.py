"""Per-request correlation id and the one-line access log."""

from __future__ import annotations

import logging
import re
import time
from contextvars import ContextVar
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_var: ContextVar[str | None] = ContextVar("principal", default=None)
logger = logging.getLogger("tracker.request")

# Caller supplied ids end up in logs; anything else is replaced.
_SAFE_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _request_id(request: Request, header_name: str) -> str:
    supplied = request.headers.get(header_name, "")
    return supplied if _SAFE_ID.match(supplied) else uuid4().hex


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Echo a correlation id on every response and log the outcome once.

    Server errors are logged at WARNING, everything else at INFO.
    """

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = _request_id(request, self.header_name)
        id_token = request_id_var.set(request_id)
        principal_token = principal_var.set(None)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            # set by the API key dependency while the route ran
            principal = getattr(request.state, "principal", None)
        finally:
            request_id_var.reset(id_token)
            principal_var.reset(principal_token)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[self.header_name] = request_id
        response.headers.setdefault("X-Response-Time", f"{elapsed_ms:.2f}ms")
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "request.completed",
            extra={
                "extra_data": {
                    "request_id": request_id,
                    "principal": principal,
                    "route": f"{request.method} {request.url.path}",
                    "status": response.status_code,
                    "elapsed_ms": elapsed_ms,
                }
            },
        )
        return response
