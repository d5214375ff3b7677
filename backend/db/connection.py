"""Database engine and session management.

One process-wide engine backs the record store. Sessions are short: every
store mutation opens one, merges its rows and commits before returning.
"""

import logging
import threading
from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from config import DatabaseSettings, get_settings

logger = logging.getLogger(__name__)

_init_lock = threading.Lock()
_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def _sqlite_durability(dbapi_conn, connection_record) -> None:
    # synchronous=FULL: a commit is on disk before it returns.
    cur = dbapi_conn.cursor()
    cur.execute("PRAGMA journal_mode=WAL")
    cur.execute("PRAGMA busy_timeout=30000")
    cur.execute("PRAGMA synchronous=FULL")
    cur.close()


def create_db_engine(db: DatabaseSettings, echo: bool = False) -> Engine:
    """Build an engine for ``db``; SQLite connections get durability pragmas."""
    if db._use_postgres():
        engine = create_engine(
            db.url,
            echo=echo,
            pool_size=db.pool_size,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
            pool_pre_ping=True,
        )
    else:
        # Request threads share the engine.
        engine = create_engine(db.url, echo=echo, connect_args={"check_same_thread": False})
        event.listen(engine, "connect", _sqlite_durability)

    logger.info("Engine created: %s", db.db_info_for_logging())
    return engine


def get_engine() -> Engine:
    """Get or create the shared database engine."""
    global _engine

    with _init_lock:
        if _engine is None:
            settings = get_settings()
            _engine = create_db_engine(settings.database, echo=settings.debug)
        return _engine


def get_session_factory() -> sessionmaker[Session]:
    global _session_factory

    engine = get_engine()
    with _init_lock:
        if _session_factory is None:
            _session_factory = sessionmaker(
                bind=engine,
                autocommit=False,
                autoflush=False,
                expire_on_commit=False,
            )
        return _session_factory


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """One unit of work: commit on success, roll back on any error."""
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
