import json
import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("DATABASE_URL", "sqlite://")

from tracker.core.logging import JsonLogFormatter
from tracker.middlewares import request_id_var


def make_record(message, **extra):
    record = logging.LogRecord("tracker.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_tags_service_and_request():
    token = request_id_var.set("req-1")
    try:
        line = JsonLogFormatter("Work Hours Tracker").format(
            make_record("entry.saved", extra_data={"entry_id": "abc", "created": True})
        )
    finally:
        request_id_var.reset(token)

    payload = json.loads(line)
    assert payload["event"] == "entry.saved"
    assert payload["service"] == "Work Hours Tracker"
    assert payload["level"] == "info"
    assert payload["request_id"] == "req-1"
    assert payload["entry_id"] == "abc"
    assert "principal" not in payload


def test_formatter_outside_a_request_omits_context():
    payload = json.loads(JsonLogFormatter("svc").format(make_record("startup")))
    assert "request_id" not in payload
    assert payload["ts"].endswith("+00:00")
