"""Audit logger implementation for the STX Contract Builder."""

import csv
import io
import json
import uuid
from collections import Counter
from datetime import datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy import and_, select

from ..generators.exceptions import GenerationError
from ..interfaces.audit import AuditEvent, AuditEventType, AuditLog, IAuditLogger
from ..models.enums import IssueLevel
from ..models.intent import Intent, ValidationIssue
from ..models.template import GeneratedContract, IntegrityResult
from .database import DatabaseManager
from .models import AuditEventModel


EXPORT_FORMATS = ("json", "csv")


def _enum_value(value: Any) -> Any:
    return getattr(value, "value", value)


class AuditLogger(IAuditLogger):
    """
    Audit logger implementation with a SQLAlchemy backend.

    Records every pipeline step for traceability and supports querying
    and exporting the resulting log.
    """

    def __init__(
        self,
        db_manager: Optional[DatabaseManager] = None,
        database_url: Optional[str] = None,
    ):
        """
        Initialize the audit logger.

        Args:
            db_manager: Optional DatabaseManager instance. If not provided,
                       a new one will be created.
            database_url: Database URL for creating a new DatabaseManager.
        """
        if db_manager is not None:
            self._db_manager = db_manager
            self._owns_db_manager = False
        else:
            self._db_manager = DatabaseManager(database_url=database_url)
            self._owns_db_manager = True
        self._db_manager.init_database()

    def _to_model(self, event: AuditEvent) -> AuditEventModel:
        """Convert AuditEvent dataclass to SQLAlchemy model."""
        return AuditEventModel(
            id=str(event.id),
            event_type=_enum_value(event.event_type),
            timestamp=event.timestamp,
            template_id=_enum_value(event.template_id),
            session_id=event.session_id,
            user_id=event.user_id,
            details=event.details or {},
            metadata_=event.metadata or {},
        )

    def _from_model(self, model: AuditEventModel) -> AuditEvent:
        """Convert SQLAlchemy model to AuditEvent dataclass."""
        return AuditEvent(
            id=model.id,
            event_type=AuditEventType(model.event_type),
            timestamp=model.timestamp,
            template_id=model.template_id,
            session_id=model.session_id,
            user_id=model.user_id,
            details=model.details or {},
            metadata=model.metadata_ or {},
        )

    def log_event(self, event: AuditEvent) -> None:
        """
        Record an audit event to the database.

        Args:
            event: The audit event to record.
        """
        model = self._to_model(event)
        with self._db_manager.get_session() as session:
            session.add(model)

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

        Returns:
            List of matching audit events, newest first.
        """
        with self._db_manager.get_session() as session:
            query = select(AuditEventModel)

            conditions = []
            if template_id:
                conditions.append(AuditEventModel.template_id == _enum_value(template_id))
            if event_type:
                conditions.append(AuditEventModel.event_type == _enum_value(event_type))
            if session_id:
                conditions.append(AuditEventModel.session_id == session_id)
            if start_time:
                conditions.append(AuditEventModel.timestamp >= start_time)
            if end_time:
                conditions.append(AuditEventModel.timestamp <= end_time)

            if conditions:
                query = query.where(and_(*conditions))

            query = query.order_by(AuditEventModel.timestamp.desc())

            result = session.execute(query)
            models = result.scalars().all()

            return [self._from_model(m) for m in models]

    def get_log(self, session_id: Optional[str] = None) -> AuditLog:
        """Collect events into an AuditLog in chronological order."""
        events = list(reversed(self.get_events(session_id=session_id)))
        return AuditLog(
            events=events,
            start_time=events[0].timestamp if events else None,
            end_time=events[-1].timestamp if events else None,
        )

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
        if format not in EXPORT_FORMATS:
            raise ValueError(f"Unsupported export format: {format}. Use 'json' or 'csv'.")

        events = self.get_events(session_id=session_id)

        if format == "json":
            return self._export_json(events)
        else:
            return self._export_csv(events)

    def _export_json(self, events: List[AuditEvent]) -> str:
        """Export events to JSON with per-type counts and integrity outcomes."""
        counts = Counter(_enum_value(e.event_type) for e in events)
        integrity = [
            {
                "template_id": e.template_id,
                "status": e.details.get("status"),
                "algorithm": e.details.get("algorithm"),
                "timestamp": e.timestamp.isoformat() if e.timestamp else None,
            }
            for e in events
            if e.event_type is AuditEventType.INTEGRITY_CHECKED
        ]

        data = {
            "export_timestamp": datetime.utcnow().isoformat(),
            "event_count": len(events),
            "event_counts": dict(counts),
            "integrity_checks": integrity,
            "events": [
                {
                    "id": e.id,
                    "event_type": _enum_value(e.event_type),
                    "timestamp": e.timestamp.isoformat() if e.timestamp else None,
                    "template_id": e.template_id,
                    "session_id": e.session_id,
                    "user_id": e.user_id,
                    "details": e.details,
                    "metadata": e.metadata,
                }
                for e in events
            ],
        }
        return json.dumps(data, indent=2, ensure_ascii=False)

    def _export_csv(self, events: List[AuditEvent]) -> str:
        """Export events to CSV format."""
        output = io.StringIO()
        writer = csv.writer(output)

        writer.writerow([
            "id", "event_type", "timestamp", "template_id",
            "session_id", "user_id", "details", "metadata"
        ])

        for e in events:
            writer.writerow([
                e.id,
                _enum_value(e.event_type),
                e.timestamp.isoformat() if e.timestamp else "",
                e.template_id or "",
                e.session_id or "",
                e.user_id or "",
                json.dumps(e.details, ensure_ascii=False),
                json.dumps(e.metadata, ensure_ascii=False),
            ])

        return output.getvalue()

    # ========== Convenience Logging Methods ==========

    def _record(
        self,
        event_type: AuditEventType,
        details: dict,
        template_id: Optional[Any] = None,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        self.log_event(AuditEvent(
            id=str(uuid.uuid4()),
            event_type=event_type,
            timestamp=datetime.utcnow(),
            template_id=_enum_value(template_id),
            session_id=session_id,
            user_id=user_id,
            details=details,
        ))

    def log_intent_interpreted(
        self,
        intent: Intent,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Log an intent interpretation event."""
        template_id = intent.template.to_template_id()
        self._record(
            AuditEventType.INTENT_INTERPRETED,
            {
                "template": intent.template.value,
                "confidence": intent.confidence,
                "placeholder_keys": sorted(intent.placeholders),
                "suggestion_count": len(intent.suggestions),
            },
            template_id=template_id,
            session_id=session_id,
            user_id=user_id,
        )

    def log_integrity_checked(
        self,
        result: IntegrityResult,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a template integrity check."""
        self._record(
            AuditEventType.INTEGRITY_CHECKED,
            result.to_dict(),
            template_id=result.template_id,
            session_id=session_id,
            user_id=user_id,
        )

    def log_contract_generated(
        self,
        contract: GeneratedContract,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a contract generation event."""
        self._record(
            AuditEventType.CONTRACT_GENERATED,
            {
                "version": contract.metadata.version,
                "filled_keys": list(contract.metadata.filled_keys),
                "source_length": len(contract.source),
            },
            template_id=contract.template_id,
            session_id=session_id,
            user_id=user_id,
        )

    def log_generation_failed(
        self,
        template_id: Any,
        error: GenerationError,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Log a rejected generation request."""
        self._record(
            AuditEventType.GENERATION_FAILED,
            error.to_dict(),
            template_id=template_id,
            session_id=session_id,
            user_id=user_id,
        )

    def log_source_validated(
        self,
        template_id: Any,
        issues: Iterable[ValidationIssue],
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> None:
        """Log the outcome of source validation."""
        issues = list(issues)
        self._record(
            AuditEventType.SOURCE_VALIDATED,
            {
                "error_count": sum(1 for i in issues if i.level is IssueLevel.ERROR),
                "warning_count": sum(1 for i in issues if i.level is IssueLevel.WARNING),
                "issues": [i.to_dict() for i in issues],
            },
            template_id=template_id,
            session_id=session_id,
            user_id=user_id,
        )

    def close(self) -> None:
        """Close the audit logger and release resources."""
        if self._owns_db_manager:
            self._db_manager.close()
