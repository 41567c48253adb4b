"""Integration tests for the end-to-end contract pipeline."""

from dataclasses import replace
from unittest.mock import Mock

import pytest

from stx_contract_builder.audit import AuditLogger
from stx_contract_builder.config import ConfigurationManager, PipelineConfig
from stx_contract_builder.interfaces.audit import AuditEventType
from stx_contract_builder.models.enums import IntegrityStatus, IntentTemplate, TemplateId
from stx_contract_builder.pipeline import (
    ContractPipeline,
    PipelineResult,
    TemplateIntegrityError,
)
from stx_contract_builder.templates import ESCROW_TEMPLATE, TEMPLATES, TemplateRegistry
from stx_contract_builder.validation import ContractValidator


ESCROW_REQUEST = (
    "Escrow payment of 5 STX from SP1ABC... to SP2DEF... "
    "with arbiter SP3GHI... deadline 100 blocks"
)


class PermissiveValidator(ContractValidator):
    """Validator that skips input checks so generation errors surface."""

    def validate_inputs(self, template, template_input):
        return []


@pytest.fixture
def pipeline():
    pipeline = ContractPipeline()
    yield pipeline
    pipeline.close()


@pytest.fixture
def audited_pipeline(tmp_path):
    config = PipelineConfig(
        enable_audit_logging=True,
        database_url=f"sqlite:///{tmp_path / 'audit.db'}",
    )
    pipeline = ContractPipeline(config=config)
    yield pipeline
    pipeline.close()


class TestBuild:
    """Tests for the full build flow."""

    def test_escrow_from_request(self, pipeline):
        result = pipeline.build(TemplateId.ESCROW, text=ESCROW_REQUEST)

        assert isinstance(result, PipelineResult)
        assert result.success
        assert result.template_id is TemplateId.ESCROW
        assert result.integrity.status is IntegrityStatus.VERIFIED
        assert result.intent.template is IntentTemplate.ESCROW
        assert result.errors == []
        assert result.source_issues == []
        assert "(define-constant buyer SP1ABC...)" in result.contract.source
        assert "(define-constant amount u5000000)" in result.contract.source
        assert "(define-constant deadline u100)" in result.contract.source
        assert result.session_id

    def test_template_id_as_string(self, pipeline):
        assert pipeline.build("escrow", text=ESCROW_REQUEST).success

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_blank_text_uses_default_prompt(self, pipeline, text):
        result = pipeline.build(TemplateId.SPLIT, text=text)
        assert result.intent.template is IntentTemplate.SPLIT
        assert result.placeholders["pct-a"] == "60"
        assert result.placeholders["pct-b"] == "40"
        assert result.success

    @pytest.mark.parametrize("template_id", list(TemplateId))
    def test_default_prompts_build(self, pipeline, template_id):
        assert pipeline.build(template_id).success

    def test_overrides_take_precedence(self, pipeline):
        result = pipeline.build(
            TemplateId.ESCROW,
            text=ESCROW_REQUEST,
            overrides={"amount-ustx": 42, "arbiter": "ST9ARBITER"},
        )
        assert "(define-constant amount u42)" in result.contract.source
        assert "(define-constant arbiter ST9ARBITER)" in result.contract.source
        assert "(define-constant buyer SP1ABC...)" in result.contract.source

    def test_intent_values_for_other_templates_ignored(self, pipeline):
        # Split request against the escrow template
        result = pipeline.build(TemplateId.ESCROW, text="split 60% to STA and 40% to STB")
        assert set(result.placeholders) == set()
        assert not result.success

    def test_invalid_inputs_stop_before_generation(self, pipeline):
        result = pipeline.build(TemplateId.ESCROW, text="escrow")

        assert not result.success
        assert result.contract is None
        messages = [i.message for i in result.input_issues]
        assert "buyer is not a valid principal" in messages
        assert pipeline.get_stats().generations == 0

    def test_generation_error_captured_with_key(self):
        pipeline = ContractPipeline(validator=PermissiveValidator())
        result = pipeline.build(TemplateId.ESCROW, text="escrow")

        assert not result.success
        assert result.contract is None
        assert result.errors[0]["key"] == "buyer"
        assert result.errors[0]["error_type"] == "InvalidPlaceholderValueError"

    def test_unknown_template(self, pipeline):
        with pytest.raises(KeyError):
            pipeline.build("CUSTOM")

    def test_result_to_dict(self, pipeline):
        data = pipeline.build(TemplateId.SUBSCRIPTION).to_dict()
        assert data["success"] is True
        assert data["template_id"] == "SUBSCRIPTION"
        assert data["contract"]["metadata"]["version"] == "1.0.0"
        assert data["integrity"]["status"] == "verified"


class TestIntegrityPolicy:
    """Tests for the integrity gate."""

    def test_mismatch_blocks_build(self):
        config = PipelineConfig(template_hashes={"ESCROW": "0" * 64})
        pipeline = ContractPipeline(config=config)

        with pytest.raises(TemplateIntegrityError) as exc_info:
            pipeline.build(TemplateId.ESCROW, text=ESCROW_REQUEST)

        assert exc_info.value.result.status is IntegrityStatus.MISMATCH
        stats = pipeline.get_stats()
        assert stats.integrity_failures == 1
        assert stats.failed_builds == 1
        # Other templates keep their built-in fingerprints
        assert pipeline.build(TemplateId.SPLIT).success

    def test_mismatch_allowed_when_not_required(self):
        config = PipelineConfig(
            require_verified_templates=False,
            template_hashes={"ESCROW": "0" * 64},
        )
        result = ContractPipeline(config=config).build(TemplateId.ESCROW, text=ESCROW_REQUEST)
        assert result.integrity.status is IntegrityStatus.MISMATCH
        assert result.success

    def test_unverifiable_needs_opt_in(self):
        broken = {TemplateId.ESCROW: replace(ESCROW_TEMPLATE, source=None)}
        registry = TemplateRegistry(templates=broken)

        strict = ContractPipeline(registry=registry)
        with pytest.raises(TemplateIntegrityError):
            strict.resolve_template(TemplateId.ESCROW)

        lenient = ContractPipeline(
            config=PipelineConfig(allow_unverifiable_templates=True),
            registry=registry,
        )
        _, result = lenient.resolve_template(TemplateId.ESCROW)
        assert result.status is IntegrityStatus.UNVERIFIABLE

    def test_rolling_algorithm(self):
        pipeline = ContractPipeline(config=PipelineConfig(fingerprint_algorithm="rolling"))
        result = pipeline.build(TemplateId.ESCROW, text=ESCROW_REQUEST)
        assert result.integrity.algorithm == "rolling"
        assert result.success

    def test_configuration_manager_feeds_pipeline(self):
        manager = ConfigurationManager()
        manager.load({"blocks_per_day": 10})
        pipeline = ContractPipeline(config=manager.configuration)

        intent = pipeline.interpret("subscription every 3 days")
        assert intent.placeholders["period"] == "30"


class TestAuditTrail:
    """Tests for audit logging during builds."""

    def test_build_records_each_step(self, audited_pipeline):
        result = audited_pipeline.build(TemplateId.ESCROW, text=ESCROW_REQUEST, user_id="alice")

        audit_logger = audited_pipeline._audit_logger
        events = audit_logger.get_events(session_id=result.session_id)
        assert {e.event_type for e in events} == {
            AuditEventType.INTEGRITY_CHECKED,
            AuditEventType.INTENT_INTERPRETED,
            AuditEventType.CONTRACT_GENERATED,
            AuditEventType.SOURCE_VALIDATED,
        }
        generated = audit_logger.get_events(event_type=AuditEventType.CONTRACT_GENERATED)
        assert generated[0].user_id == "alice"
        assert generated[0].template_id == "ESCROW"

    def test_generation_failure_recorded(self, tmp_path):
        audit_logger = AuditLogger(database_url=f"sqlite:///{tmp_path / 'audit.db'}")
        pipeline = ContractPipeline(validator=PermissiveValidator(), audit_logger=audit_logger)
        try:
            result = pipeline.build(TemplateId.ESCROW, text="escrow")
            [event] = audit_logger.get_events(event_type=AuditEventType.GENERATION_FAILED)
            assert event.session_id == result.session_id
            assert event.details["key"] == "buyer"
        finally:
            pipeline.close()
            audit_logger.close()

    def test_audit_failures_do_not_abort_build(self):
        failing = Mock()
        for name in (
            "log_intent_interpreted",
            "log_integrity_checked",
            "log_contract_generated",
            "log_source_validated",
        ):
            getattr(failing, name).side_effect = RuntimeError("database is down")

        pipeline = ContractPipeline(audit_logger=failing)
        assert pipeline.build(TemplateId.ESCROW, text=ESCROW_REQUEST).success

    def test_injected_logger_not_closed(self):
        injected = Mock()
        ContractPipeline(audit_logger=injected).close()
        injected.close.assert_not_called()


class TestStatsAndDiagnostics:
    """Tests for the introspection interface."""

    def test_stats(self, pipeline):
        pipeline.interpret("hello")
        pipeline.build(TemplateId.ESCROW, text=ESCROW_REQUEST)
        pipeline.build(TemplateId.ESCROW, text="escrow")

        stats = pipeline.get_stats()
        assert stats.interpretations == 3
        assert stats.generations == 1
        assert stats.successful_builds == 1
        assert stats.failed_builds == 1
        assert stats.total_builds == 2
        assert stats.average_processing_time >= 0.0

    def test_stats_are_per_instance(self):
        first = ContractPipeline()
        second = ContractPipeline()
        first.build(TemplateId.SPLIT)
        assert second.get_stats().total_builds == 0

    def test_diagnostics(self, pipeline):
        pipeline.build(TemplateId.SPLIT)
        data = pipeline.diagnostics()

        assert data["algorithm"] == "sha256"
        assert set(data["templates"]) == {t.value for t in TEMPLATES}
        assert all(t["status"] == "verified" for t in data["templates"].values())
        assert data["stats"]["successful_builds"] == 1
        assert data["audit_logging"] is False
        assert data["config"]["require_verified_templates"] is True
