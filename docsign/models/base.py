"""
Declarative base shared by users, documents and signatures.

Primary keys are generic UUIDs so the schema runs on PostgreSQL in
production and SQLite in tests. Timestamps are naive UTC.
"""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Uuid
from sqlalchemy.orm import declarative_base


Base = declarative_base()


class TimestampMixin:
    """created_at / updated_at bookkeeping; listings sort on created_at."""

    created_at = Column(
        DateTime,
        default=datetime.utcnow,
        nullable=False,
        index=True,
        doc="When the record was created (UTC)"
    )
    updated_at = Column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
        doc="When the record was last written (UTC)"
    )


class UUIDMixin:
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        doc="Record identifier"
    )


class BaseModel(Base, UUIDMixin, TimestampMixin):
    """Abstract parent of every docsign table."""

    __abstract__ = True

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"
