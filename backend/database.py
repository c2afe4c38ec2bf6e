import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from pathlib import Path
from typing import Optional

from config.store_config import get_settings
from constants import StoreDefaults

logger = logging.getLogger(__name__)

Base = declarative_base()

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite files get WAL mode and a busy timeout so concurrent writers wait
    for locks instead of failing. In-memory SQLite shares one connection
    across threads, otherwise every connection would see an empty database.
    That connection is not safe under concurrent requests, so in-memory
    URLs are for tests only; serve traffic from a SQLite file or a server
    database.
    """
    if not database_url.startswith('sqlite'):
        return create_engine(database_url, echo=False, pool_pre_ping=True, pool_recycle=3600)

    if database_url in ('sqlite://', 'sqlite:///:memory:'):
        logger.warning("In-memory SQLite shares one connection and is meant for tests only")
        engine = create_engine(
            database_url,
            connect_args={'check_same_thread': False},
            poolclass=StaticPool,
            echo=False,
        )
    else:
        db_file = database_url.replace('sqlite:///', '', 1)
        Path(db_file).parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            database_url,
            connect_args={'check_same_thread': False},
            echo=False,
            pool_pre_ping=True,
        )

    # Enable WAL mode on connection
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        if database_url not in ('sqlite://', 'sqlite:///:memory:'):
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute(f"PRAGMA busy_timeout={StoreDefaults.SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()

    return engine


def get_engine() -> Engine:
    """Return the process-wide engine, creating it from settings on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().database_url)
    return _engine


def get_session_factory() -> sessionmaker:
    """Return the process-wide session factory bound to get_engine()."""
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _session_factory


def dispose_engine():
    """Close pooled connections and forget the cached engine."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
