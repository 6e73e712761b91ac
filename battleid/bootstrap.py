"""
Startup routine that makes the store ready for traffic.

Tables are created if absent, then (optionally) the operative id generator
is moved to ``MAX(id) + 1`` so rows inserted with explicit ids cannot
collide with generated ones. Failures are logged and reported through
``BootstrapResult`` instead of being raised, so the API keeps serving
against a degraded store.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import SQLAlchemyError

from battleid import models  # noqa: F401  (registers tables on Base.metadata)
from battleid.db import Base
from battleid.logger import get_logger

logger = get_logger(__name__)

OPERATIVE_TABLE = "battle_ids"
OPERATIVE_ID_COLUMN = "id"


@dataclass(frozen=True)
class BootstrapResult:
    ready: bool
    next_id: int | None = None
    error: str | None = None


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine, checkfirst=True)
    logger.info("Tables initialized: %s", ", ".join(t.name for t in Base.metadata.sorted_tables))


def next_id_value(conn: Connection, table: str = OPERATIVE_TABLE, column: str = OPERATIVE_ID_COLUMN) -> int:
    quote = conn.dialect.identifier_preparer.quote
    value = conn.execute(text(f"SELECT COALESCE(MAX({quote(column)}), 0) + 1 FROM {quote(table)}")).scalar_one()
    return int(value)


def _repair_postgresql(conn: Connection, table: str, column: str, next_value: int) -> None:
    quote = conn.dialect.identifier_preparer.quote
    sequence = f"{table}_{column}_seq"
    exists = conn.execute(text("SELECT to_regclass(:name)"), {"name": sequence}).scalar_one_or_none()
    if exists is None:
        # IF NOT EXISTS: a concurrent instance may have created it first.
        conn.execute(text(f"CREATE SEQUENCE IF NOT EXISTS {quote(sequence)} START WITH {next_value:d}"))
        conn.execute(
            text(
                f"ALTER TABLE {quote(table)} ALTER COLUMN {quote(column)} "
                f"SET DEFAULT nextval('{sequence}')"
            )
        )
        conn.execute(text(f"ALTER SEQUENCE {quote(sequence)} OWNED BY {quote(table)}.{quote(column)}"))
    else:
        conn.execute(text(f"ALTER SEQUENCE {quote(sequence)} RESTART WITH {next_value:d}"))


def _repair_sqlite(conn: Connection, table: str, next_value: int) -> None:
    has_sequence_table = conn.execute(
        text("SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'sqlite_sequence'")
    ).first()
    if has_sequence_table is None:
        return
    conn.execute(text("DELETE FROM sqlite_sequence WHERE name = :name"), {"name": table})
    conn.execute(
        text("INSERT INTO sqlite_sequence (name, seq) VALUES (:name, :seq)"),
        {"name": table, "seq": next_value - 1},
    )


def repair_sequence(engine: Engine, table: str = OPERATIVE_TABLE, column: str = OPERATIVE_ID_COLUMN) -> int:
    """
    Reset the id generator of ``table`` so the next generated id is
    ``MAX(column) + 1`` (1 for an empty table).

    Runs in a single transaction. Returns the next id.
    """
    with engine.begin() as conn:
        next_value = next_id_value(conn, table, column)
        dialect = conn.dialect.name
        if dialect == "postgresql":
            _repair_postgresql(conn, table, column, next_value)
        elif dialect == "sqlite":
            _repair_sqlite(conn, table, next_value)
        else:
            logger.warning("Sequence repair is not supported for dialect %s", dialect)
    logger.info("Sequence for %s.%s restarted at %d", table, column, next_value)
    return next_value


def _create_tables_with_retry(engine: Engine) -> None:
    try:
        create_tables(engine)
    except SQLAlchemyError as exc:
        # Another instance may have created some tables between our existence
        # checks and CREATE TABLE; a second pass sees them and skips them.
        logger.warning("Table creation failed, retrying once: %s", exc)
        create_tables(engine)


def run_bootstrap(engine: Engine, repair_sequences: bool = True) -> BootstrapResult:
    try:
        _create_tables_with_retry(engine)
        next_id = repair_sequence(engine) if repair_sequences else None
    except SQLAlchemyError as exc:
        logger.error("Bootstrap failed, serving in degraded mode: %s", exc)
        return BootstrapResult(ready=False, error=str(exc))
    return BootstrapResult(ready=True, next_id=next_id)
