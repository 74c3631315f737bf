"""Small idempotent migrations for databases created by older releases."""

from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from ..models.usage import UNIQUE_KEY_COLUMNS, UNIQUE_KEY_NAME, UsageRecord

logger = logging.getLogger(__name__)

# Additive only. Columns are never dropped or rewritten here.


def _column_names(engine: Engine, table: str) -> set[str]:
    inspector = inspect(engine)
    if not inspector.has_table(table):
        return set()
    return {column["name"] for column in inspector.get_columns(table)}


def _add_column(engine: Engine, table: str, col_def: str) -> None:
    """ALTER TABLE ADD COLUMN helper."""
    with engine.begin() as conn:
        conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {col_def}"))
    logger.info("migration.column_added", extra={"extra_data": {"table": table, "column": col_def}})


def _create_unique_index(engine: Engine, table: str, name: str, cols: Iterable[str]) -> None:
    cols_sql = ", ".join(cols)
    with engine.begin() as conn:
        conn.execute(text(f"CREATE UNIQUE INDEX {name} ON {table} ({cols_sql})"))


def _has_unique_key(engine: Engine, table: str, cols: Iterable[str]) -> bool:
    """True when some unique constraint or unique index already covers exactly ``cols``."""

    wanted = list(cols)
    inspector = inspect(engine)
    for constraint in inspector.get_unique_constraints(table):
        if list(constraint.get("column_names") or []) == wanted:
            return True
    for index in inspector.get_indexes(table):
        if index.get("unique") and list(index.get("column_names") or []) == wanted:
            return True
    return False


def run_migrations(engine: Engine) -> None:
    """Bring an existing ``time_tracking`` table up to the shape the ledger expects."""

    table = UsageRecord.__tablename__
    cols = _column_names(engine, table)
    if not cols:
        # Table absent -> Base.metadata.create_all builds the current schema.
        return

    if "website_title" not in cols:
        _add_column(engine, table, "website_title TEXT")

    # Conflict target of the ledger upsert.
    if not _has_unique_key(engine, table, UNIQUE_KEY_COLUMNS):
        _create_unique_index(engine, table, UNIQUE_KEY_NAME, UNIQUE_KEY_COLUMNS)
        logger.info("migration.unique_key_created", extra={"extra_data": {"table": table, "name": UNIQUE_KEY_NAME}})
