"""Audit logger interface for the STX Contract Builder."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class AuditEventType(Enum):
    """Types of audit events tracked by the pipeline."""
    INTENT_INTERPRETED = "intent_interpreted"
    INTEGRITY_CHECKED = "integrity_checked"
    CONTRACT_GENERATED = "contract_generated"
    GENERATION_FAILED = "generation_failed"
    SOURCE_VALIDATED = "source_validated"


@dataclass
class AuditEvent:
    """
    Audit event record.

    Represents a single pipeline step, including the template it concerns,
    the session that produced it and step-specific details.
    """
    id: str
    event_type: AuditEventType
    timestamp: datetime
    template_id: Optional[str] = None
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    details: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        if self.metadata is None:
            self.metadata = {}


@dataclass
class AuditLog:
    """Collection of audit events for a session or template."""
    events: List[AuditEvent] = field(default_factory=list)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def __post_init__(self):
        if self.events is None:
            self.events = []


class IAuditLogger(ABC):
    """
    Abstract interface for audit logging.

    Implementations record and query pipeline events for traceability.
    """

    @abstractmethod
    def log_event(self, event: AuditEvent) -> None:
        """
        Record an audit event.

        Args:
            event: The audit event to record.
        """
        pass

    @abstractmethod
    def get_events(
        self,
        template_id: Optional[str] = None,
        event_type: Optional[AuditEventType] = None,
        session_id: Optional[str] = None,
        start_time: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
    ) -> List[AuditEvent]:
        """
        Query audit events with optional filters.

        Args:
            template_id: Filter by template ID.
            event_type: Filter by event type.
            session_id: Filter by session ID.
            start_time: Filter events after this time.
            end_time: Filter events before this time.

        Returns:
            List of matching audit events, newest first.
        """
        pass

    @abstractmethod
    def export_log(
        self,
        session_id: Optional[str] = None,
        format: str = "json",
    ) -> str:
        """
        Export the audit log.

        Args:
            session_id: Restrict the export to one session.
            format: Export format ("json" or "csv").

        Returns:
            Exported log content as a string.

        Raises:
            ValueError: If format is not supported.
        """
        pass
