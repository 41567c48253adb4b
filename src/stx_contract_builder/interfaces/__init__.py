"""Abstract interfaces for the STX Contract Builder."""

from .extractor import IIntentExtractor
from .mapper import IIntentMapper
from .generator import IContractGenerator
from .audit import AuditEvent, AuditEventType, AuditLog, IAuditLogger

__all__ = [
    "IIntentExtractor",
    "IIntentMapper",
    "IContractGenerator",
    "AuditEvent",
    "AuditEventType",
    "AuditLog",
    "IAuditLogger",
]
