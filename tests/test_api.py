"""HTTP surface: entries, periods, PDF export, auth and error envelopes."""

import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("DATABASE_URL", "sqlite://")

from tracker import app
from tracker.core.config import settings
from tracker.db.session import Base, get_db
from tracker.deps.storage import get_clock

T0 = datetime(2025, 4, 1, 18, 0, tzinfo=timezone.utc)


class TickingClock:
    """Each call returns a moment one hour after the previous one."""

    def __init__(self, start: datetime) -> None:
        self.moment = start

    def __call__(self) -> datetime:
        self.moment += timedelta(hours=1)
        return self.moment


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "")
    monkeypatch.setattr(settings, "STORAGE_BACKEND", "sql")
    monkeypatch.setattr(settings, "SYNC_REMOTE_URL", "")

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.create_all(bind=engine)

    def get_test_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    clock = TickingClock(T0)
    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def add(client, day, start="09:00", end="17:00", location="Brakel 18km"):
    return client.post(
        "/api/v1/entries",
        json={"date": day, "start_time": start, "end_time": end, "location": location},
    )


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_create_then_replace_same_day(client):
    first = add(client, "2025-04-01")
    assert first.status_code == 201
    body = first.json()
    assert body["hours_worked"] == 8.0
    assert body["kilometers"] == 18
    assert body["current"] is True

    second = add(client, "2025-04-01", start="10:00", end="12:30", location="Gent")
    assert second.status_code == 200
    replaced = second.json()
    assert replaced["id"] == body["id"]
    assert replaced["added_at"] == body["added_at"]
    assert replaced["hours_worked"] == 2.5
    assert replaced["kilometers"] == 50

    listing = client.get("/api/v1/entries").json()
    assert [row["id"] for row in listing] == [body["id"]]


def test_entries_are_listed_newest_date_first(client):
    add(client, "2025-04-01")
    add(client, "2025-04-03")
    add(client, "2025-04-02")
    dates = [row["date"] for row in client.get("/api/v1/entries").json()]
    assert dates == ["2025-04-03", "2025-04-02", "2025-04-01"]


def test_current_period_totals(client):
    empty = client.get("/api/v1/periods/current").json()
    assert empty["total_hours"] == 0.0
    assert empty["start_date"] == "No entries"
    assert empty["last_reset_at"] is None

    add(client, "2025-04-01")
    add(client, "2025-04-02", start="09:00", end="12:00", location="Gent")
    period = client.get("/api/v1/periods/current").json()
    assert period["total_hours"] == 11.0
    assert period["total_kilometers"] == 68
    assert period["start_date"] == "April 1, 2025"
    assert period["end_date"] == "April 2, 2025"
    assert period["entry_count"] == 2


def test_reset_requires_confirmation(client):
    add(client, "2025-04-01")
    response = client.post("/api/v1/periods/reset", json={})
    assert response.status_code == 409
    assert response.json()["code"] == "confirmation_required"
    assert client.get("/api/v1/periods").json() == []
    assert client.get("/api/v1/periods/current").json()["total_hours"] == 8.0


def test_reset_archives_and_starts_new_period(client):
    add(client, "2025-04-01")
    add(client, "2025-04-02", start="09:00", end="12:00", location="Gent")

    response = client.post("/api/v1/periods/reset", json={"confirm": True})
    assert response.status_code == 200
    body = response.json()
    summary = body["summary"]
    assert summary["total_hours"] == 11.0
    assert summary["total_kilometers"] == 68
    assert summary["start_date"] == "April 1, 2025"
    assert body["last_reset_at"]

    current = client.get("/api/v1/periods/current").json()
    assert current["total_hours"] == 0.0
    assert current["entry_count"] == 0

    flags = [row["current"] for row in client.get("/api/v1/entries").json()]
    assert flags == [False, False]

    add(client, "2025-04-03")
    current = client.get("/api/v1/periods/current").json()
    assert current["total_hours"] == 8.0
    assert current["start_date"] == "April 3, 2025"

    archived = client.get("/api/v1/periods").json()
    assert [row["id"] for row in archived] == [summary["id"]]
    assert client.get(f"/api/v1/periods/{summary['id']}").json()["total_hours"] == 11.0


def test_reset_without_hours_only_moves_checkpoint(client):
    body = client.post("/api/v1/periods/reset", json={"confirm": True}).json()
    assert body["summary"] is None
    assert client.get("/api/v1/periods").json() == []
    assert client.get("/api/v1/periods/current").json()["last_reset_at"] == body["last_reset_at"]


def test_period_pdf_download(client):
    add(client, "2025-04-01")
    summary = client.post("/api/v1/periods/reset", json={"confirm": True}).json()["summary"]

    response = client.get(f"/api/v1/periods/{summary['id']}/pdf")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")
    assert summary["id"] in response.headers["content-disposition"]


def test_delete_summary_and_entry(client):
    entry = add(client, "2025-04-01").json()
    summary = client.post("/api/v1/periods/reset", json={"confirm": True}).json()["summary"]

    assert client.delete(f"/api/v1/periods/{summary['id']}").json() == {"status": "deleted"}
    missing = client.delete(f"/api/v1/periods/{summary['id']}")
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"

    assert client.delete(f"/api/v1/entries/{entry['id']}").status_code == 200
    assert client.get(f"/api/v1/entries/{entry['id']}").status_code == 404


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"start_time": "09:00", "end_time": "17:00", "location": "Brakel"}, "Please select a date"),
        ({"date": "2025-04-01", "start_time": "25:00", "end_time": "17:00", "location": "Brakel"}, "Hour"),
        ({"date": "2025-04-01", "start_time": "17:00", "end_time": "09:00", "location": "Brakel"}, "after start"),
        ({"date": "2025-04-01", "start_time": "09:00", "end_time": "17:00", "location": " "}, "location"),
    ],
)
def test_invalid_entries_are_rejected(client, payload, message):
    response = client.post("/api/v1/entries", json=payload)
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "invalid_entry"
    assert message in body["message"]
    assert client.get("/api/v1/entries").json() == []


def test_missing_fields_are_not_filled_in(client):
    response = client.post("/api/v1/entries", json={"date": "2025-04-01"})
    assert response.status_code == 422
    assert response.json()["code"] == "invalid_entry"
    assert client.get("/api/v1/entries").json() == []


def test_single_digit_hour_is_normalised(client):
    body = add(client, "2025-04-01", start="9:05").json()
    assert body["start_time"] == "09:05"


def test_malformed_date_is_a_validation_error(client):
    response = client.post("/api/v1/entries", json={"date": "first of april"})
    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "validation_error"
    assert body["details"]["errors"][0]["loc"][-1] == "date"


def test_api_key_gate(client, monkeypatch):
    monkeypatch.setattr(settings, "API_KEY", "secret")

    missing = client.get("/api/v1/entries")
    assert missing.status_code == 401
    assert missing.json() == {"code": "http_error", "message": "Authorization required"}

    wrong = client.get("/api/v1/entries", headers={"X-API-Key": "nope"})
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid API key"

    ok = client.get("/api/v1/entries", headers={"X-API-Key": "secret"})
    assert ok.status_code == 200


def test_response_headers(client):
    response = client.get("/api/v1/entries", headers={"X-Request-ID": "abc123"})
    assert response.headers["X-Request-ID"] == "abc123"
    assert response.headers["Cache-Control"] == "no-store"
    assert response.headers["X-Content-Type-Options"] == "nosniff"


def test_sync_status_and_unconfigured_drain(client):
    status = client.get("/api/v1/sync/status").json()
    assert status == {"enabled": False, "pending": 0}

    response = client.post("/api/v1/sync/drain")
    assert response.status_code == 409
    assert response.json()["message"] == "SYNC_REMOTE_URL is not set"


def test_writes_are_queued_when_sync_is_enabled(client, monkeypatch):
    monkeypatch.setattr(settings, "SYNC_REMOTE_URL", "https://remote.example/sync")
    entry = add(client, "2025-04-01").json()
    add(client, "2025-04-01", start="10:00")
    client.delete(f"/api/v1/entries/{entry['id']}")

    assert client.get("/api/v1/sync/status").json() == {"enabled": True, "pending": 3}


def test_memory_backend(client, monkeypatch):
    from tracker.deps import storage

    monkeypatch.setattr(settings, "STORAGE_BACKEND", "memory")
    monkeypatch.setattr(storage, "_memory_stores", {})

    assert add(client, "2025-04-01").status_code == 201
    assert add(client, "2025-04-01", end="18:00").status_code == 200
    period = client.get("/api/v1/periods/current").json()
    assert period["total_hours"] == 9.0


def test_request_log_names_route_and_principal(client, monkeypatch, caplog):
    monkeypatch.setattr(settings, "API_KEY", "secret")
    caplog.set_level(logging.INFO, logger="tracker.request")

    client.get("/api/v1/entries", headers={"X-API-Key": "secret", "X-Request-ID": "req-42"})

    records = [record for record in caplog.records if record.getMessage() == "request.completed"]
    assert records
    data = records[-1].extra_data
    assert data["request_id"] == "req-42"
    assert data["principal"] == "api-key:owner"
    assert data["route"] == "GET /api/v1/entries"
    assert data["status"] == 200


def test_unsafe_request_id_is_replaced(client):
    response = client.get("/health", headers={"X-Request-ID": "not safe\tid"})
    replaced = response.headers["X-Request-ID"]
    assert replaced != "not safe\tid"
    assert len(replaced) == 32


def test_memory_store_is_reused_per_user(monkeypatch):
    from tracker.deps import storage
    from tracker.deps.auth import AuthContext

    monkeypatch.setattr(settings, "STORAGE_BACKEND", "memory")
    monkeypatch.setattr(storage, "_memory_stores", {})

    first = storage.get_repository(auth=AuthContext(user_id="owner"), db=None)
    second = storage.get_repository(auth=AuthContext(user_id="owner"), db=None)
    other = storage.get_repository(auth=AuthContext(user_id="someone"), db=None)
    assert first is second
    assert other is not first
    assert set(storage._memory_stores) == {"owner", "someone"}
