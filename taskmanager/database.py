"""Engine, session factory and declarative base.

The engine (and its connection pool) is owned by a :class:`Database` instance
created once during application startup and disposed at shutdown. Request
handlers receive sessions through :func:`get_db`, which reads the instance from
``app.state`` instead of a module-level global.
"""
import logging
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Base class for the models
Base = declarative_base()


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, _connection_record) -> None:  # pragma: no cover - SQLAlchemy callback
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def build_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for ``database_url``."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        # In-memory databases only live as long as their single connection.
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, **kwargs)
        _enable_sqlite_foreign_keys(engine)
        return engine

    return create_engine(database_url, pool_pre_ping=True)


class Database:
    """Process-scoped connection pool plus session factory."""

    def __init__(self, database_url: str, engine: Optional[Engine] = None):
        self.url = database_url
        self.engine = engine or build_engine(database_url)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        # Import models so every table is registered on the metadata.
        from taskmanager import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        logger.info("Database schema ready (%s)", self.engine.url.render_as_string(hide_password=True))

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database connection pool disposed")


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
