"""Database configuration for the occurrence engine."""
from typing import Generator
import logging
import os

from dotenv import load_dotenv
from sqlalchemy import event
from sqlmodel import create_engine, Session

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///./occurrences.db")
IS_SQLITE = DATABASE_URL.startswith("sqlite")


def build_engine(database_url: str, **kwargs):
    """Create an engine, applying SQLite connection settings when needed."""
    sqlite = database_url.startswith("sqlite")
    connect_args = {"check_same_thread": False} if sqlite else {}
    connect_args.update(kwargs.pop("connect_args", {}))

    new_engine = create_engine(database_url, echo=False, connect_args=connect_args, **kwargs)

    if sqlite:
        @event.listens_for(new_engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            # Enable foreign keys and WAL mode for better concurrency
            cursor.execute("PRAGMA foreign_keys=ON")
            if ":memory:" not in database_url:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return new_engine


if IS_SQLITE:
    logger.info(f"[DB CONFIG] Using SQLite database: {DATABASE_URL}")
else:
    logger.info("[DB CONFIG] Using PostgreSQL database")

engine = build_engine(DATABASE_URL)


def get_session() -> Generator[Session, None, None]:
    """Dependency for getting database sessions."""
    with Session(engine) as session:
        yield session
