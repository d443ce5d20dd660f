"""
Database session and Base ORM declarations.

This module depends on:
- youthlink.config.settings.get_settings for the DATABASE_URL
It is imported by:
- youthlink.models (for Base)
- youthlink.main (for engine/Base)
- any code needing a DB session (via SessionLocal or get_db)
"""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from youthlink.config import get_settings

settings = get_settings()

# SQLite needs cross-thread access because FastAPI runs sync routes in a threadpool
_connect_args = (
    {"check_same_thread": False}
    if settings.database_url.startswith("sqlite")
    else {}
)

engine = create_engine(
    settings.database_url,
    connect_args=_connect_args,
    future=True,
)

SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    future=True,
)

Base = declarative_base()


def get_db():
    """
    FastAPI dependency that yields a DB session and ensures it is closed.

    Example usage in a route:
        from youthlink.db.session import get_db
        def endpoint(db: Session = Depends(get_db)): ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
