"""
Database resource: engine, connection pool and session factory.

A single ``Database`` is opened by the application lifespan and stored on
``app.state.database``; request handlers receive sessions through ``get_db``.
"""

from contextlib import contextmanager
from typing import Generator, Optional
import logging

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the SQLAlchemy engine and hands out sessions."""

    def __init__(
        self,
        url: str,
        pool_size: int = 10,
        max_overflow: int = 0,
        pool_timeout: int = 30,
        echo: bool = False,
    ):
        self.url = url
        self.engine: Engine = self._create_engine(
            url, pool_size, max_overflow, pool_timeout, echo
        )
        self._session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    @staticmethod
    def _create_engine(
        url: str, pool_size: int, max_overflow: int, pool_timeout: int, echo: bool
    ) -> Engine:
        if url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}, "echo": echo}
            if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
                # One shared connection, otherwise every session sees an empty DB
                kwargs["poolclass"] = StaticPool
            engine = create_engine(url, **kwargs)
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
            return engine

        # Bounded QueuePool: once pool_size + max_overflow connections are
        # checked out, callers wait up to pool_timeout for one to come back.
        return create_engine(
            url,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
            pool_pre_ping=True,
            echo=echo,
        )

    def new_session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        db = self.new_session()
        try:
            yield db
        finally:
            db.close()

    def create_all(self) -> None:
        # Import models so they register with the metadata
        import app.models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        import app.models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def ping(self) -> bool:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def dispose(self) -> None:
        logger.info("Closing database connection pool")
        self.engine.dispose()


def open_database(settings, url: Optional[str] = None) -> Database:
    """Build the application's Database from settings."""
    database = Database(
        url or settings.DATABASE_URL,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )
    logger.info(
        "Database connection pool opened",
        extra={"pool_size": settings.DB_POOL_SIZE},
    )
    return database


def get_db(request: Request) -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session bound to the app's Database."""
    database: Database = request.app.state.database
    with database.session() as db:
        yield db
