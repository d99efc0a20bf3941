from prometheus_fastapi_instrumentator import Instrumentator

from tracker.core.config import settings
from tracker.core.logging import configure_logging
from . import app as tracker_app

configure_logging(settings.LOG_LEVEL, service=settings.APP_NAME)
app = tracker_app
Instrumentator().instrument(app).expose(app, include_in_schema=False)


def run() -> None:
    import uvicorn

    uvicorn.run("tracker.main:app", host=settings.HOST, port=settings.PORT)
