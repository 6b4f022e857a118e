"""
Engine and sessions for the cache tables.

The URL comes from settings.database_url: a local SQLite file unless it
points at PostgreSQL, so several app instances can share one cache.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from .settings import settings

# Sync route dependencies run in the threadpool; one connection may serve several threads
_connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=_connect_args)

SessionLocal = sessionmaker(autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Declarative base shared by the location row and its dependent rows."""


def get_db():
    """Route dependency: one session per request, closed once the response is sent."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
