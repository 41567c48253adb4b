"""Unit tests for the Audit Logger."""

import csv
import io
import json
import uuid
from datetime import datetime, timedelta

import pytest

from stx_contract_builder.audit import AuditLogger, DatabaseManager
from stx_contract_builder.audit.database import DEFAULT_DATABASE_URL, get_database_url
from stx_contract_builder.audit.models import AuditEventModel
from stx_contract_builder.generators import MissingPlaceholderError, generate_contract
from stx_contract_builder.interfaces.audit import AuditEvent, AuditEventType
from stx_contract_builder.mapping import interpret_natural_language
from stx_contract_builder.models.enums import IssueLevel, TemplateId
from stx_contract_builder.models.intent import ValidationIssue
from stx_contract_builder.templates import ESCROW_TEMPLATE, verify_template_integrity


ESCROW_INPUT = {
    "buyer": "ST1BUYER",
    "seller": "ST2SELLER",
    "arbiter": "ST3ARBITER",
    "deadline-height": 100,
    "amount-ustx": 1,
}


@pytest.fixture
def db_manager(tmp_path):
    manager = DatabaseManager(database_url=f"sqlite:///{tmp_path / 'audit.db'}")
    yield manager
    manager.close()


@pytest.fixture
def audit_logger(db_manager):
    logger = AuditLogger(db_manager=db_manager)
    yield logger
    logger.close()


def make_event(event_type=AuditEventType.CONTRACT_GENERATED, **kwargs):
    defaults = dict(
        id=str(uuid.uuid4()),
        event_type=event_type,
        timestamp=datetime.utcnow(),
        template_id="ESCROW",
    )
    defaults.update(kwargs)
    return AuditEvent(**defaults)


class TestDatabaseManager:

    def test_health_check(self, db_manager):
        assert db_manager.health_check()

    def test_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("STX_BUILDER_DATABASE_URL", "sqlite:///from-env.db")
        assert get_database_url() == "sqlite:///from-env.db"
        assert get_database_url("sqlite:///explicit.db") == "sqlite:///explicit.db"

    def test_default_is_in_memory(self, monkeypatch):
        monkeypatch.delenv("STX_BUILDER_DATABASE_URL", raising=False)
        assert get_database_url() == DEFAULT_DATABASE_URL

    def test_in_memory_database_shared_across_sessions(self, monkeypatch):
        monkeypatch.delenv("STX_BUILDER_DATABASE_URL", raising=False)
        logger = AuditLogger()
        try:
            logger.log_event(make_event())
            assert len(logger.get_events()) == 1
        finally:
            logger.close()

    def test_session_rolls_back_on_error(self, audit_logger, db_manager):
        with pytest.raises(RuntimeError):
            with db_manager.get_session() as session:
                session.add(AuditEventModel(event_type="contract_generated"))
                raise RuntimeError("boom")
        assert audit_logger.get_events() == []


class TestLogAndQuery:

    def test_log_event_round_trip(self, audit_logger):
        event = make_event(
            session_id="s-1",
            user_id="alice",
            details={"filled_keys": ["buyer"]},
            metadata={"source": "test"},
        )
        audit_logger.log_event(event)

        [stored] = audit_logger.get_events()
        assert stored.id == event.id
        assert stored.event_type is AuditEventType.CONTRACT_GENERATED
        assert stored.template_id == "ESCROW"
        assert stored.session_id == "s-1"
        assert stored.user_id == "alice"
        assert stored.details == {"filled_keys": ["buyer"]}
        assert stored.metadata == {"source": "test"}

    def test_enum_template_id_stored_as_value(self, audit_logger):
        audit_logger.log_event(make_event(template_id=TemplateId.SPLIT))
        assert audit_logger.get_events()[0].template_id == "SPLIT"

    def test_filters(self, audit_logger):
        audit_logger.log_event(make_event(template_id="ESCROW", session_id="a"))
        audit_logger.log_event(make_event(
            event_type=AuditEventType.INTEGRITY_CHECKED, template_id="SPLIT", session_id="b",
        ))

        assert len(audit_logger.get_events()) == 2
        assert [e.template_id for e in audit_logger.get_events(template_id=TemplateId.SPLIT)] == ["SPLIT"]
        assert [e.session_id for e in audit_logger.get_events(session_id="a")] == ["a"]
        integrity = audit_logger.get_events(event_type=AuditEventType.INTEGRITY_CHECKED)
        assert [e.template_id for e in integrity] == ["SPLIT"]

    def test_time_filters(self, audit_logger):
        now = datetime.utcnow()
        audit_logger.log_event(make_event(timestamp=now - timedelta(hours=2)))
        audit_logger.log_event(make_event(timestamp=now))

        recent = audit_logger.get_events(start_time=now - timedelta(hours=1))
        old = audit_logger.get_events(end_time=now - timedelta(hours=1))
        assert len(recent) == 1
        assert len(old) == 1

    def test_newest_first(self, audit_logger):
        now = datetime.utcnow()
        audit_logger.log_event(make_event(timestamp=now - timedelta(minutes=5), details={"n": 1}))
        audit_logger.log_event(make_event(timestamp=now, details={"n": 2}))
        assert [e.details["n"] for e in audit_logger.get_events()] == [2, 1]

    def test_get_log_is_chronological(self, audit_logger):
        now = datetime.utcnow()
        audit_logger.log_event(make_event(timestamp=now, session_id="s"))
        audit_logger.log_event(make_event(timestamp=now - timedelta(minutes=1), session_id="s"))
        log = audit_logger.get_log(session_id="s")
        assert len(log.events) == 2
        assert log.start_time < log.end_time


class TestConvenienceMethods:

    def test_log_intent_interpreted(self, audit_logger):
        intent = interpret_natural_language("split 60% to STA and 40% to STB")
        audit_logger.log_intent_interpreted(intent, session_id="s")

        [event] = audit_logger.get_events()
        assert event.event_type is AuditEventType.INTENT_INTERPRETED
        assert event.template_id == "SPLIT"
        assert event.details["template"] == "SPLIT"
        assert event.details["placeholder_keys"] == ["pct-a", "pct-b", "recipient-a", "recipient-b"]

    def test_log_unknown_intent_has_no_template(self, audit_logger):
        audit_logger.log_intent_interpreted(interpret_natural_language("hello"))
        assert audit_logger.get_events()[0].template_id is None

    def test_log_integrity_checked(self, audit_logger):
        audit_logger.log_integrity_checked(verify_template_integrity(ESCROW_TEMPLATE))
        [event] = audit_logger.get_events(event_type=AuditEventType.INTEGRITY_CHECKED)
        assert event.details["status"] == "verified"
        assert event.details["algorithm"] == "sha256"

    def test_log_contract_generated(self, audit_logger):
        contract = generate_contract(ESCROW_TEMPLATE, ESCROW_INPUT)
        audit_logger.log_contract_generated(contract, user_id="bob")
        [event] = audit_logger.get_events()
        assert event.details["filled_keys"] == list(contract.metadata.filled_keys)
        assert event.details["source_length"] == len(contract.source)
        assert event.user_id == "bob"

    def test_log_generation_failed(self, audit_logger):
        error = MissingPlaceholderError("Missing required placeholder: buyer", key="buyer")
        audit_logger.log_generation_failed(TemplateId.ESCROW, error)
        [event] = audit_logger.get_events()
        assert event.event_type is AuditEventType.GENERATION_FAILED
        assert event.details["key"] == "buyer"
        assert event.details["error_type"] == "MissingPlaceholderError"

    def test_log_source_validated(self, audit_logger):
        issues = [
            ValidationIssue(IssueLevel.WARNING, "No public functions found"),
            ValidationIssue(IssueLevel.ERROR, "Unfilled placeholders remain"),
        ]
        audit_logger.log_source_validated(TemplateId.SPLIT, issues)
        [event] = audit_logger.get_events()
        assert event.details["error_count"] == 1
        assert event.details["warning_count"] == 1
        assert len(event.details["issues"]) == 2


class TestExport:

    def test_export_json(self, audit_logger):
        audit_logger.log_integrity_checked(verify_template_integrity(ESCROW_TEMPLATE), session_id="s")
        audit_logger.log_event(make_event(session_id="s"))
        audit_logger.log_event(make_event(session_id="other"))

        data = json.loads(audit_logger.export_log(session_id="s"))
        assert data["event_count"] == 2
        assert data["event_counts"] == {"integrity_checked": 1, "contract_generated": 1}
        assert data["integrity_checks"][0]["status"] == "verified"
        assert {e["session_id"] for e in data["events"]} == {"s"}

    def test_export_all(self, audit_logger):
        audit_logger.log_event(make_event(session_id="a"))
        audit_logger.log_event(make_event(session_id="b"))
        assert json.loads(audit_logger.export_log())["event_count"] == 2

    def test_export_csv(self, audit_logger):
        audit_logger.log_event(make_event(details={"k": "v"}))
        rows = list(csv.reader(io.StringIO(audit_logger.export_log(format="csv"))))
        assert rows[0] == [
            "id", "event_type", "timestamp", "template_id",
            "session_id", "user_id", "details", "metadata",
        ]
        assert rows[1][1] == "contract_generated"
        assert json.loads(rows[1][6]) == {"k": "v"}

    def test_unsupported_format(self, audit_logger):
        with pytest.raises(ValueError, match="Unsupported export format"):
            audit_logger.export_log(format="xml")
