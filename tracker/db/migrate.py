"""Idempotent schema checks run at startup after ``create_all``."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

DAY_KEY = ("user_id", "date")
DAY_KEY_INDEX = "ix_work_entries_user_date_unique"


def _has_unique_key(engine: Engine, table: str, cols: Iterable[str]) -> bool:
    wanted = list(cols)
    inspector = inspect(engine)
    for constraint in inspector.get_unique_constraints(table):
        if list(constraint["column_names"]) == wanted:
            return True
    for index in inspector.get_indexes(table):
        if index.get("unique") and list(index["column_names"]) == wanted:
            return True
    return False


def _create_index_if_not_exists(engine: Engine, table: str, name: str, cols: Iterable[str], unique: bool = False) -> None:
    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql})"))


def run_migrations(engine: Engine) -> None:
    """Make sure ``work_entries`` holds at most one row per user and day.

    ``create_all`` never alters a table that already exists, so a
    ``work_entries`` table created without the constraint gets a unique index
    instead. Tables that already carry the key are left untouched.
    """
    if not inspect(engine).has_table("work_entries"):
        return
    if _has_unique_key(engine, "work_entries", DAY_KEY):
        return
    logger.info("adding unique index %s", DAY_KEY_INDEX)
    _create_index_if_not_exists(engine, "work_entries", DAY_KEY_INDEX, DAY_KEY, unique=True)
