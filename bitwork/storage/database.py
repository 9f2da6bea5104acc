"""SQLAlchemy engine and session lifecycle for the entity store."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from bitwork.models import Base

logger = logging.getLogger("bitwork.storage")


class DatabaseNotOpenError(RuntimeError):
    """Raised when a session is requested before ``open()`` or after ``close()``."""


class Database:
    """Explicitly opened handle to the relational store.

    Owns one engine and one session factory. Create it at process start,
    ``open()`` it, hand it to whatever needs sessions, and ``close()`` it
    on shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def open(self) -> "Database":
        if self.engine is not None:
            return self

        if self.is_sqlite:
            self._ensure_sqlite_dir()
            kwargs = {"connect_args": {"check_same_thread": False}}
            if make_url(self.url).database in (None, "", ":memory:"):
                # One shared connection, otherwise every checkout sees an empty database
                kwargs["poolclass"] = StaticPool
            self.engine = create_engine(self.url, echo=self.echo, **kwargs)
            _install_sqlite_hooks(self.engine)
        else:
            self.engine = create_engine(self.url, echo=self.echo, pool_pre_ping=True)

        self._sessionmaker = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        logger.info("Database opened: %s", make_url(self.url).render_as_string(hide_password=True))
        return self

    def close(self) -> None:
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            self._sessionmaker = None
            logger.info("Database closed")

    def create_all(self) -> None:
        """Create any missing tables and indexes."""
        Base.metadata.create_all(bind=self._require_engine())

    def new_session(self) -> Session:
        if self._sessionmaker is None:
            raise DatabaseNotOpenError("Database is not open")
        return self._sessionmaker()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that is always closed; committing is the caller's job."""
        db = self.new_session()
        try:
            yield db
        finally:
            db.close()

    def _require_engine(self) -> Engine:
        if self.engine is None:
            raise DatabaseNotOpenError("Database is not open")
        return self.engine

    def _ensure_sqlite_dir(self) -> None:
        database = make_url(self.url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def _install_sqlite_hooks(engine: Engine) -> None:
    """Enforce foreign keys and let SQLAlchemy own BEGIN so SAVEPOINTs nest properly."""

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        try:
            cursor.execute("PRAGMA foreign_keys=ON")
        finally:
            cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")
