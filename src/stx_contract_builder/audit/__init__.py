"""Audit module for the STX Contract Builder."""

from .audit_logger import AuditLogger
from .database import DatabaseManager, get_database_url
from .models import (
    AuditEventModel,
    Base,
)

__all__ = [
    "AuditLogger",
    "DatabaseManager",
    "get_database_url",
    "AuditEventModel",
    "Base",
]
