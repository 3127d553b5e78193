"""Small idempotent schema upgrades for databases created by older builds."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..models.time_session import OPEN_SESSION_INDEX

logger = logging.getLogger(__name__)

# Additive only: columns are ADDed and backfilled, never dropped.


def _table_columns(engine: Engine, table: str) -> list[dict[str, object]]:
    """Fetch SQLite's description of a table so we know what columns exist."""

    with engine.connect() as conn:
        return conn.execute(text(f"PRAGMA table_info({table})")).mappings().all()


def _column_names(engine: Engine, table: str) -> set[str]:
    return {record["name"] for record in _table_columns(engine, table)}


def _add_column_sqlite(engine: Engine, table: str, col_def: str) -> None:
    """ALTER TABLE ADD COLUMN helper."""
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))


def _create_index_if_not_exists(
    engine: Engine,
    table: str,
    name: str,
    cols: Iterable[str],
    unique: bool = False,
    where: str | None = None,
) -> None:
    cols_sql = ", ".join(cols)
    unique_sql = "UNIQUE " if unique else ""
    where_sql = f" WHERE {where}" if where else ""
    with engine.begin() as conn:
        conn.execute(text(f"CREATE {unique_sql}INDEX IF NOT EXISTS {name} ON {table} ({cols_sql}){where_sql}"))


def _close_duplicate_open_sessions(engine: Engine) -> int:
    """Close every open session except the newest one per project.

    Older builds did not guard "start", so a project may carry several open
    rows. They are closed at their own start time (zero duration) so the
    unique index can be built without inventing tracked hours.
    """

    with engine.begin() as conn:
        result = conn.execute(
            text(
                """
                UPDATE time_sessions
                SET end_time = start_time
                WHERE end_time IS NULL
                  AND id NOT IN (
                      SELECT MAX(id) FROM time_sessions
                      WHERE end_time IS NULL
                      GROUP BY project_id
                  )
                """
            )
        )
        return result.rowcount or 0


def run_migrations(engine: Engine) -> None:
    """Bring an existing SQLite schema up to date with the models."""

    if engine.dialect.name != "sqlite":
        return

    pcols = _column_names(engine, "projects")
    if pcols:
        if "description" not in pcols:
            _add_column_sqlite(engine, "projects", "description TEXT")
        if "updated_at" not in pcols:
            _add_column_sqlite(engine, "projects", "updated_at DATETIME")
            with engine.begin() as conn:
                conn.execute(text("UPDATE projects SET updated_at = created_at WHERE updated_at IS NULL"))

    ncols = _column_names(engine, "notes")
    if ncols and "created_at" not in ncols:
        _add_column_sqlite(engine, "notes", "created_at DATETIME")
        with engine.begin() as conn:
            conn.execute(text("UPDATE notes SET created_at = updated_at WHERE created_at IS NULL"))

    scols = _column_names(engine, "time_sessions")
    if not scols:
        # Table absent -> Base.metadata.create_all builds the current schema.
        return
    if "comment" not in scols:
        _add_column_sqlite(engine, "time_sessions", "comment TEXT")

    closed = _close_duplicate_open_sessions(engine)
    if closed:
        logger.warning("migrate.closed_duplicate_sessions", extra={"extra_data": {"count": closed}})
    _create_index_if_not_exists(
        engine,
        "time_sessions",
        OPEN_SESSION_INDEX,
        ["project_id"],
        unique=True,
        where="end_time IS NULL",
    )
