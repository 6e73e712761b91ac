from __future__ import annotations

from collections.abc import Iterator

from fastapi import Request
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from battleid.logger import get_logger

Base = declarative_base()

logger = get_logger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, sslmode: str = "require") -> Engine:
    if database_url.startswith("sqlite"):
        engine = create_engine(database_url, connect_args={"check_same_thread": False}, pool_pre_ping=True)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    connect_args = {"sslmode": sslmode} if database_url.startswith("postgresql") else {}
    return create_engine(database_url, connect_args=connect_args, pool_pre_ping=True)


class Store:
    """Owns the engine and session factory for one application instance."""

    def __init__(self, database_url: str, sslmode: str = "require") -> None:
        self.database_url = database_url
        self.sslmode = sslmode
        self.engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    def open(self) -> None:
        if self.engine is not None:
            return
        self.engine = build_engine(self.database_url, self.sslmode)
        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self.engine,
            expire_on_commit=False,
        )
        logger.info("Store opened (%s)", self.engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self._session_factory = None
        logger.info("Store closed")

    def session(self) -> Session:
        if self._session_factory is None:
            raise RuntimeError("Store is not open")
        return self._session_factory()


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.store.session()
    try:
        yield db
    finally:
        db.close()
