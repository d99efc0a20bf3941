"""Application factory and top-level wiring for the work hours tracker.

Configuration, storage, routers and error handling meet here. Routers only
translate HTTP into calls on ``services.worklog``; the period arithmetic lives
in ``services.periods`` and never sees a request or a session.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.config import settings
from .core.errors import (
    TrackerError,
    http_exception_handler,
    tracker_exception_handler,
    validation_exception_handler,
)
from .db.migrate import run_migrations
from .db.session import Base, engine
from .middlewares import RequestLogMiddleware, SecurityHeadersMiddleware

# Importing the models registers their tables with ``Base.metadata``.
from .models import entry as _entry  # noqa: F401
from .models import period as _period  # noqa: F401
from .models import sync as _sync  # noqa: F401

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    run_migrations(engine)
    logger.info("storage ready (backend=%s)", settings.STORAGE_BACKEND)
    yield


app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)

app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLogMiddleware)
if settings.ALLOWED_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Content-Type", "X-API-Key", "X-Request-ID"],
    )

app.add_exception_handler(TrackerError, tracker_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

from .routers import api_entries as api_entries_router  # noqa: E402

app.include_router(api_entries_router.router)

from .routers import api_periods as api_periods_router  # noqa: E402

app.include_router(api_periods_router.router)

from .routers import api_sync as api_sync_router  # noqa: E402

app.include_router(api_sync_router.router)


@app.get("/health", tags=["meta"])
async def health() -> dict[str, bool]:
    return {"ok": True}


__all__ = ["app"]
