"""
Database module: engine, session factory and ORM models.
"""

from .database import Base, SessionLocal, engine, get_db, create_tables, drop_tables

__all__ = [
    "Base",
    "SessionLocal",
    "engine",
    "get_db",
    "create_tables",
    "drop_tables",
]
