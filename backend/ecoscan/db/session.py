"""
Database engine and sessions.

Two ways to get a session:
- get_db: FastAPI dependency, one session per request (read paths)
- get_session_factory: the factory itself, for services that open a fresh
  session per unit of work (the reward ledger retries whole transactions)
"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator

from ecoscan.core.config import settings


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    SQLite connections are handed between worker threads (the ledger runs
    its transactions off the event loop), so the same-thread check is off
    and writers wait on the file lock instead of failing immediately.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": 30},
        )

    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Committed objects stay readable after the session closes,
# services hand them to async callers
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine
)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session, closed once the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> sessionmaker:
    """Dependency returning the session factory."""
    return SessionLocal
