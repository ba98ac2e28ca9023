"""
Engine and session wiring for the document store.

``DATABASE_URL`` selects the backend; SQLite is the development default.
Requests get one session each through ``get_db``.
"""

import os
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from docsign.models import Base

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./docsign.db")


def build_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine; SQLite connections are shared across the threadpool."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(
        url,
        pool_pre_ping=True,
        connect_args=connect_args,
        echo=os.getenv("DB_ECHO", "false").lower() == "true"
    )


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Request-scoped session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables(bind: Engine = None) -> None:
    Base.metadata.create_all(bind=bind or engine)
