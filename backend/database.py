"""
Database engine, session factory and declarative base.

The connection URL comes from the DATABASE_URL environment variable and
defaults to a local SQLite file for development.
"""

import logging
import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

SQLALCHEMY_DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./task_api.db")


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """
    Turn on foreign key enforcement for every SQLite connection of an engine.

    SQLite ignores ON DELETE CASCADE unless the pragma is set per connection.
    """
    if target.dialect.name != "sqlite":
        return

    @event.listens_for(target, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    logger.debug("SQLite foreign key enforcement enabled")


connect_args = {}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
enable_sqlite_foreign_keys(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield one session per request and always close it."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
