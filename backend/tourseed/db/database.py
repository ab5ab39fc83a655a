"""
Database connection and session management.
The engine is built lazily from settings.database_url so that a missing URL
fails at first use, before any store call. Supports PostgreSQL and SQLite.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from typing import Generator, Optional
import logging

from tourseed.core.config import settings, require_database_url
from tourseed.db.models import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None

# Session factory; bound to the engine on first use
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
)


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite gets a StaticPool, enforced foreign keys and explicit BEGIN
    handling so SAVEPOINTs work through pysqlite. PostgreSQL gets a
    health-checked QueuePool.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            # Hand transaction control to SQLAlchemy ("begin" listener below)
            dbapi_conn.isolation_level = None
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN")

        return engine

    engine = create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_recycle=settings.database_pool_recycle,
        pool_pre_ping=settings.database_pool_pre_ping,
        pool_timeout=30,
        echo=False,
        connect_args={"connect_timeout": 10},
    )

    @event.listens_for(engine, "connect")
    def receive_connect(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("SET application_name = 'tourseed'")
        cursor.close()

    return engine


def get_engine() -> Engine:
    """Return the process-wide engine, building it on first call."""
    global _engine
    if _engine is None:
        _engine = build_engine(require_database_url(settings))
        SessionLocal.configure(bind=_engine)
    return _engine


def new_session() -> Session:
    get_engine()
    return SessionLocal()


def get_db() -> Generator[Optional[Session], None, None]:
    """
    Dependency injection for database session.
    Yields None if the database is not configured or cannot be reached.
    """
    try:
        db = new_session()
    except Exception as e:
        logger.warning(f"Database unavailable: {e}")
        yield None
        return
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Optional[Engine] = None) -> None:
    """Create all tables that do not exist yet."""
    logger.info("Initializing database schema...")
    Base.metadata.create_all(bind=engine or get_engine())
    logger.info("Database schema initialized")
