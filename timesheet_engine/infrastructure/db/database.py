"""
Database configuration and session management.
"""

from typing import Generator
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import NullPool

from timesheet_engine.config import settings


def _connect_args(database_url: str) -> dict:
    # SQLite connections are shared across the threadpool FastAPI runs sync work in
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# Create SQLAlchemy engine
engine = create_engine(
    settings.database_url,
    poolclass=NullPool,
    echo=settings.debug,
    connect_args=_connect_args(settings.database_url),
)

# Create SessionLocal class
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Create declarative base
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function to get database session.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind=None) -> None:
    """Create all tables known to the metadata."""
    # Register models on the metadata
    from timesheet_engine.infrastructure.db import models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)


def drop_tables(bind=None) -> None:
    """Drop all tables known to the metadata."""
    from timesheet_engine.infrastructure.db import models  # noqa: F401
    Base.metadata.drop_all(bind=bind or engine)
