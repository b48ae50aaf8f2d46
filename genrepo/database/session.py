"""
Database Session Management
============================

Handles database connections, session lifecycle and the process-wide
global session handle used by repositories constructed without one.
"""

import logging
import os
from contextlib import contextmanager
from typing import Generator, Optional, Union

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from genrepo.config import settings

logger = logging.getLogger(__name__)

SessionHandle = Union[Session, scoped_session]


def create_db_engine(
    database_url: Optional[str] = None,
    echo: Optional[bool] = None,
) -> Engine:
    """
    Create and configure a database engine.

    Args:
        database_url: SQLAlchemy URL; defaults to ``settings.database_url``
        echo: Log emitted SQL; defaults to ``settings.database_echo``

    For SQLite the engine gets a StaticPool, foreign key enforcement, and
    explicit BEGIN handling so that SAVEPOINTs (nested transactions) work
    under the pysqlite driver.
    """
    if database_url is None:
        database_url = settings.database_url
    if echo is None:
        echo = settings.database_echo

    # SQLite-specific configuration
    if database_url.startswith("sqlite"):
        in_memory = True
        # Ensure data directory exists
        if ":///" in database_url:
            db_path = database_url.split(":///")[1]
            if db_path and not db_path.startswith(":memory:"):
                in_memory = False
                db_dir = os.path.dirname(db_path)
                if db_dir and not os.path.exists(db_dir):
                    os.makedirs(db_dir, exist_ok=True)

        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo
        )
        use_wal = settings.sqlite_wal and not in_memory

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            # pysqlite must not issue its own BEGIN; see do_begin below
            dbapi_conn.isolation_level = None
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if use_wal:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        @event.listens_for(engine, "begin")
        def do_begin(conn):
            conn.exec_driver_sql("BEGIN")

    else:
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)

    logger.debug("database.engine.created", extra={"dialect": engine.dialect.name})
    return engine


# Create global engine and session factory
engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_context(
    session_factory: Optional[sessionmaker] = None,
) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Commits when the block exits normally, rolls back on any exception
    (including KeyboardInterrupt and SystemExit), always closes.

    Usage:
        with get_db_context() as db:
            MainRepository(Widget, db).create(Widget(name="bolt"))
    """
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise
    finally:
        db.close()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency-injection generator: yields a session, closes it afterwards.

    Usage:
        @app.get("/")
        def index(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_all_tables(engine_instance: Optional[Engine] = None) -> None:
    """Create all tables registered on the declarative base."""
    from genrepo.models.base import Base

    if engine_instance is None:
        engine_instance = engine

    Base.metadata.create_all(bind=engine_instance)


def drop_all_tables(engine_instance: Optional[Engine] = None) -> None:
    """Drop all tables registered on the declarative base."""
    from genrepo.models.base import Base

    if engine_instance is None:
        engine_instance = engine

    Base.metadata.drop_all(bind=engine_instance)


# ========================================
# Process-wide Session Handle
# ========================================

# Set once during startup, read-only afterwards. Reassigning it while
# repositories are in use from other threads is a caller contract violation.
_global_session: Optional[SessionHandle] = None


def init_global_session(
    handle: Optional[Union[SessionHandle, sessionmaker]] = None,
) -> SessionHandle:
    """
    Register the session handle used by repositories built without one.

    Args:
        handle: A Session, a scoped_session, or a sessionmaker (wrapped in a
            thread-local scoped_session). Defaults to ``SessionLocal``.

    Returns:
        The registered handle

    Raises:
        RuntimeError: If a handle is already registered
    """
    global _global_session

    if _global_session is not None:
        raise RuntimeError(
            "Global session handle is already initialized; "
            "call reset_global_session() first"
        )

    if handle is None:
        handle = SessionLocal
    if isinstance(handle, sessionmaker):
        handle = scoped_session(handle)

    _global_session = handle
    logger.info("database.global_session.initialized", extra={"handle": type(handle).__name__})
    return handle


def get_global_session() -> SessionHandle:
    """
    Get the registered global session handle.

    Raises:
        RuntimeError: If init_global_session() has not been called
    """
    if _global_session is None:
        raise RuntimeError("Global session handle is not initialized; call init_global_session() at startup")
    return _global_session


def reset_global_session() -> None:
    """Release and unregister the global handle (shutdown and tests)."""
    global _global_session

    handle = _global_session
    _global_session = None
    if isinstance(handle, scoped_session):
        handle.remove()
    elif handle is not None:
        handle.close()
