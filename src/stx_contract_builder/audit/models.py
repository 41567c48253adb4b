"""SQLAlchemy models for the audit system."""

from datetime import datetime
import uuid

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Index,
    JSON,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator


class JSONType(TypeDecorator):
    """Platform-independent JSON type.

    Uses JSONB for PostgreSQL and JSON for other databases (like SQLite).
    """
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB())
        else:
            return dialect.type_descriptor(JSON())


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


class AuditEventModel(Base):
    """Audit events table model."""
    __tablename__ = "audit_events"

    id = Column(String(36), primary_key=True, default=_new_id)
    event_type = Column(String(50), nullable=False)
    timestamp = Column(DateTime, default=datetime.utcnow)
    template_id = Column(String(32), nullable=True)
    session_id = Column(String(36), nullable=True)
    user_id = Column(String(100), nullable=True)
    details = Column(JSONType)
    metadata_ = Column("metadata", JSONType)

    __table_args__ = (
        Index("idx_audit_events_event_type", "event_type"),
        Index("idx_audit_events_timestamp", "timestamp"),
        Index("idx_audit_events_template_id", "template_id"),
        Index("idx_audit_events_session_id", "session_id"),
    )
