"""Database package."""

from genrepo.database.session import (
    SessionHandle,
    engine,
    SessionLocal,
    create_db_engine,
    get_db,
    get_db_context,
    create_all_tables,
    drop_all_tables,
    init_global_session,
    get_global_session,
    reset_global_session,
)

__all__ = [
    "SessionHandle",
    "engine",
    "SessionLocal",
    "create_db_engine",
    "get_db",
    "get_db_context",
    "create_all_tables",
    "drop_all_tables",
    "init_global_session",
    "get_global_session",
    "reset_global_session",
]
