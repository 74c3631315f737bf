"""SQLAlchemy engine, session factory and the per-request session dependency."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..core.config import settings

# SQLite connections get handed between FastAPI worker threads.
CONNECT_ARGS = {"check_same_thread": False} if settings.is_sqlite else {}

# The pool is the only state shared between requests. It is bounded so that a
# burst of requests queues for a connection instead of opening new ones.
POOL_ARGS = (
    {}
    if settings.is_sqlite
    else {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_timeout": settings.DB_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }
)

engine = create_engine(settings.DB_URL, connect_args=CONNECT_ARGS, **POOL_ARGS)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """FastAPI dependency that yields a session and guarantees cleanup."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
