import os
import sys
from pathlib import Path

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))
os.environ.setdefault("DATABASE_URL", "sqlite://")

from tracker.db.migrate import DAY_KEY_INDEX, run_migrations
from tracker.db.session import Base

# Ensure models are registered so metadata tables are created
from tracker.models import entry as entry_model  # noqa: F401
from tracker.models import period as period_model  # noqa: F401
from tracker.models import sync as sync_model  # noqa: F401


def make_engine():
    return create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)


def unique_day_keys(engine):
    with engine.connect() as conn:
        rows = conn.execute(text(
            "SELECT name FROM sqlite_master WHERE type = 'index' AND tbl_name = 'work_entries'"
        )).scalars().all()
        keys = []
        for name in rows:
            info = conn.execute(text(f"PRAGMA index_info('{name}')")).all()
            unique = conn.execute(text("PRAGMA index_list('work_entries')")).all()
            is_unique = any(row[1] == name and row[2] for row in unique)
            columns = [row[2] for row in sorted(info)]
            if is_unique and columns == ["user_id", "date"]:
                keys.append(name)
        return keys


def test_fresh_schema_keeps_a_single_day_key():
    engine = make_engine()
    Base.metadata.create_all(bind=engine)

    run_migrations(engine)
    run_migrations(engine)

    assert len(unique_day_keys(engine)) == 1
    assert DAY_KEY_INDEX not in {ix["name"] for ix in inspect(engine).get_indexes("work_entries")}


def test_table_without_day_key_gets_unique_index():
    engine = make_engine()
    with engine.begin() as conn:
        conn.execute(text(
            "CREATE TABLE work_entries (id TEXT PRIMARY KEY, user_id TEXT, date TEXT, start_time TEXT, "
            "end_time TEXT, hours_worked TEXT, location TEXT, kilometers INTEGER, added_at TEXT, updated_at TEXT)"
        ))

    run_migrations(engine)
    run_migrations(engine)

    assert unique_day_keys(engine) == [DAY_KEY_INDEX]


def test_missing_tables_are_left_alone():
    engine = make_engine()
    run_migrations(engine)
    assert inspect(engine).get_table_names() == []
