"""
Database engine and session management for SteamRank.

There is no module-level engine: the web app creates one at startup
(see web/main.py lifespan) and disposes of it at shutdown, and scripts
create their own. Components receive a session factory and open a
short-lived session per operation.

Usage:
    from steamrank.db import create_db_engine, create_session_factory, session_scope

    engine = create_db_engine()
    SessionFactory = create_session_factory(engine)

    with session_scope(SessionFactory) as session:
        entries = session.query(LadderEntry).all()
        # Commits automatically on exit, rolls back on exception
"""

from contextlib import contextmanager
from typing import Callable, Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from steamrank.config import Settings, settings as default_settings

# Execution option marking a transaction that will write; SQLite only
WRITE_LOCK_OPTION = "steamrank_write_lock"


def create_db_engine(url: Optional[str] = None, settings: Optional[Settings] = None) -> Engine:
    """
    Create a SQLAlchemy engine for the ladder database.

    PostgreSQL (production) gets a connection pool with pre-ping; row
    locks come from SELECT ... FOR UPDATE.

    SQLite (development and tests) ignores FOR UPDATE, so write
    transactions (session_scope(..., write=True)) are opened with
    BEGIN IMMEDIATE instead. That takes the database write lock up front
    and serialises concurrent writers, with the busy timeout bounding how
    long a writer waits. Read-only transactions use a plain deferred BEGIN
    and never touch the write lock.
    """
    settings = settings or default_settings
    url = url or settings.database_url
    echo = settings.log_level == "DEBUG"  # Log SQL only in debug mode

    if make_url(url).get_backend_name() != "sqlite":
        return create_engine(
            url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,  # Verify connection is alive before using
            echo=echo,
        )

    database = make_url(url).database
    connect_args = {
        "timeout": settings.db_busy_timeout_seconds,
        "check_same_thread": False,
    }
    if not database or database == ":memory:":
        # One shared connection, otherwise every thread sees its own empty database
        engine = create_engine(url, connect_args=connect_args, poolclass=StaticPool, echo=echo)
    else:
        engine = create_engine(url, connect_args=connect_args, echo=echo)

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        """Hand transaction control to SQLAlchemy and enforce foreign keys."""
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def on_begin(conn):
        if conn.get_execution_options().get(WRITE_LOCK_OPTION):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to the given engine."""
    return sessionmaker(
        autocommit=False,  # We'll handle commits explicitly
        autoflush=False,  # Don't auto-flush before queries (more control)
        expire_on_commit=False,
        bind=engine,
    )


@contextmanager
def session_scope(
    session_factory: Callable[[], Session],
    write: bool = False,
) -> Generator[Session, None, None]:
    """
    Context manager for database sessions.

    Automatically commits on successful exit, rolls back on exception.

    Args:
        session_factory: Factory from create_session_factory()
        write: Begin the transaction immediately, holding the SQLite
            write lock until commit. Has no effect on PostgreSQL.

    Raises:
        Any exception from the database operation (after rollback)
    """
    session = session_factory()
    try:
        if write:
            session.connection(execution_options={WRITE_LOCK_OPTION: True})
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
