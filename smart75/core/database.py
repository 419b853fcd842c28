"""
SQLAlchemy wiring for the remote tier.

One process-wide engine built from DATABASE_URL (or passed in explicitly),
a session context manager that commits or rolls back, and the single
`challenge_states` table.
"""
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import JSON, Column, DateTime, MetaData, String, Table, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.sql import func

from smart75.core.config import settings
from smart75.core.logging import get_logger

logger = get_logger("database")

metadata = MetaData()

# Pool settings for server databases; SQLite uses SQLAlchemy's defaults
POOL_SIZE = 5
MAX_OVERFLOW = 10
POOL_TIMEOUT = 30
POOL_RECYCLE = 3600

_engine: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None

# One challenge document per user
challenge_states = Table(
    "challenge_states",
    metadata,
    Column("user_id", String(255), primary_key=True),
    Column("state", JSON, nullable=False),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False),
)


def init_engine(database_url: Optional[str] = None) -> Engine:
    """Build the process engine from `database_url` or DATABASE_URL."""
    global _engine, _SessionLocal

    url = database_url or settings.DATABASE_URL
    if not url:
        raise ValueError("DATABASE_URL is not configured")

    if url.startswith("sqlite"):
        _engine = create_engine(url)
    else:
        _engine = create_engine(
            url,
            pool_size=POOL_SIZE,
            max_overflow=MAX_OVERFLOW,
            pool_timeout=POOL_TIMEOUT,
            pool_recycle=POOL_RECYCLE,
            pool_pre_ping=True,
        )
    _SessionLocal = sessionmaker(autoflush=False, bind=_engine)
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        return init_engine()
    return _engine


@contextmanager
def get_db_session(engine: Optional[Engine] = None) -> Iterator[Session]:
    """
    Session bound to `engine` (or the process engine).

    Commits when the block exits cleanly, rolls back and re-raises otherwise.
    """
    if engine is not None:
        session = Session(bind=engine, autoflush=False)
    else:
        if _SessionLocal is None:
            init_engine()
        session = _SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables(engine: Optional[Engine] = None) -> None:
    metadata.create_all(bind=engine or get_engine())


def check_connection(engine: Optional[Engine] = None) -> bool:
    try:
        with (engine or get_engine()).connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("database.unreachable", exc_info=True)
        return False
    return True


def reset_engine() -> None:
    """Dispose of the process engine (tests switch databases with this)."""
    global _engine, _SessionLocal
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionLocal = None
