"""End-to-end contract building pipeline for the STX Contract Builder.

This module wires the components together: a natural-language request is
interpreted into an intent, the chosen template is checked against its
expected fingerprint, placeholder values are validated, and the contract
source is generated and statically validated.
"""

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .audit.audit_logger import AuditLogger
from .config.models import PipelineConfig
from .extractors.intent_extractor import IntentExtractor
from .generators.contract_generator import ContractGenerator
from .generators.exceptions import GenerationError
from .interfaces.extractor import IIntentExtractor
from .interfaces.generator import IContractGenerator
from .interfaces.mapper import IIntentMapper
from .mapping.intent_mapper import IntentMapper
from .models.enums import TemplateId
from .models.intent import Intent, ValidationIssue
from .models.template import ContractTemplate, GeneratedContract, IntegrityResult
from .templates.library import DEFAULT_PROMPTS, TEMPLATES, coerce_template_id
from .templates.registry import DEFAULT_HASH_TABLES, TemplateRegistry
from .validation.validator import ContractValidator, has_errors


logger = logging.getLogger(__name__)


class TemplateIntegrityError(Exception):
    """Raised when a template fails the configured integrity policy."""

    def __init__(self, message: str, result: IntegrityResult):
        super().__init__(message)
        self.message = message
        self.result = result


@dataclass
class PipelineResult:
    """Result of a single build."""

    success: bool
    template_id: Optional[TemplateId] = None
    intent: Optional[Intent] = None
    integrity: Optional[IntegrityResult] = None
    placeholders: Dict[str, Any] = field(default_factory=dict)
    contract: Optional[GeneratedContract] = None
    input_issues: List[ValidationIssue] = field(default_factory=list)
    source_issues: List[ValidationIssue] = field(default_factory=list)
    errors: List[Dict[str, Any]] = field(default_factory=list)
    session_id: Optional[str] = None
    processing_time: float = 0.0

    @property
    def issues(self) -> List[ValidationIssue]:
        return self.input_issues + self.source_issues

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "template_id": self.template_id.value if self.template_id else None,
            "intent": self.intent.to_dict() if self.intent else None,
            "integrity": self.integrity.to_dict() if self.integrity else None,
            "placeholders": dict(self.placeholders),
            "contract": self.contract.to_dict() if self.contract else None,
            "input_issues": [i.to_dict() for i in self.input_issues],
            "source_issues": [i.to_dict() for i in self.source_issues],
            "errors": list(self.errors),
            "session_id": self.session_id,
            "processing_time": self.processing_time,
        }


@dataclass
class PipelineStats:
    """Counters for pipeline activity."""

    interpretations: int = 0
    generations: int = 0
    successful_builds: int = 0
    failed_builds: int = 0
    integrity_failures: int = 0
    total_processing_time: float = 0.0

    @property
    def total_builds(self) -> int:
        return self.successful_builds + self.failed_builds

    @property
    def average_processing_time(self) -> float:
        if not self.total_builds:
            return 0.0
        return self.total_processing_time / self.total_builds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interpretations": self.interpretations,
            "generations": self.generations,
            "successful_builds": self.successful_builds,
            "failed_builds": self.failed_builds,
            "integrity_failures": self.integrity_failures,
            "total_builds": self.total_builds,
            "average_processing_time": self.average_processing_time,
        }


class ContractPipeline:
    """
    Main pipeline for building contracts from natural-language requests.

    Components can be injected; defaults are built from the configuration.
    Statistics are kept per instance and exposed through ``get_stats()``
    and ``diagnostics()``.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        registry: Optional[TemplateRegistry] = None,
        extractor: Optional[IIntentExtractor] = None,
        mapper: Optional[IIntentMapper] = None,
        generator: Optional[IContractGenerator] = None,
        validator: Optional[ContractValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration.
            registry: Template registry (built from the configured algorithm
                and fingerprint overrides if not provided).
            extractor: Optional intent extractor.
            mapper: Optional intent mapper.
            generator: Optional contract generator.
            validator: Optional contract validator.
            audit_logger: Optional audit logger (created when audit logging
                is enabled and none is provided).
        """
        self.config = config or PipelineConfig()
        self.stats = PipelineStats()

        self._registry = registry or self._build_registry()
        self._extractor = extractor or IntentExtractor()
        self._mapper = mapper or IntentMapper(blocks_per_day=self.config.blocks_per_day)
        self._generator = generator or ContractGenerator(
            max_string_length=self.config.max_string_length
        )
        self._validator = validator or ContractValidator(
            max_source_length=self.config.max_source_length,
            max_string_length=self.config.max_string_length,
        )

        self._audit_logger = audit_logger
        self._owns_audit_logger = False
        if self._audit_logger is None and self.config.enable_audit_logging:
            self._audit_logger = AuditLogger(database_url=self.config.database_url)
            self._owns_audit_logger = True

        logger.info(
            f"Contract pipeline initialized (algorithm={self._registry.algorithm}, "
            f"require_verified={self.config.require_verified_templates})"
        )

    def _build_registry(self) -> TemplateRegistry:
        algorithm = self.config.fingerprint_algorithm
        expected: Dict[Any, str] = dict(DEFAULT_HASH_TABLES[algorithm])
        for key, value in self.config.template_hashes.items():
            expected[coerce_template_id(key)] = value
        return TemplateRegistry(TEMPLATES, expected_hashes=expected, algorithm=algorithm)

    @property
    def registry(self) -> TemplateRegistry:
        return self._registry

    @property
    def validator(self) -> ContractValidator:
        return self._validator

    @property
    def generator(self) -> IContractGenerator:
        return self._generator

    def interpret(self, text: str, session_id: Optional[str] = None) -> Intent:
        """Interpret a natural-language request into an intent."""
        params = self._extractor.extract(text)
        intent = self._mapper.map(text, params)
        self.stats.interpretations += 1

        logger.info(
            f"Interpreted request as {intent.template.value} "
            f"(confidence={intent.confidence:.2f})"
        )
        if self._audit_logger:
            self._audit_safely(self._audit_logger.log_intent_interpreted, intent, session_id=session_id)
        return intent

    def resolve_template(
        self,
        template_id: Union[TemplateId, str],
        session_id: Optional[str] = None,
    ) -> Tuple[ContractTemplate, IntegrityResult]:
        """
        Look up a template and apply the integrity policy.

        Raises:
            KeyError: If the template id is unknown.
            TemplateIntegrityError: If the template is not trusted.
        """
        template = self._registry.get(template_id)
        result = self._registry.verify(template)

        if self._audit_logger:
            self._audit_safely(self._audit_logger.log_integrity_checked, result, session_id=session_id)

        if not self.config.require_verified_templates:
            if not result.passed:
                logger.warning(
                    f"Template {template.id.value} integrity {result.status.value}, "
                    f"continuing because verification is not required"
                )
            return template, result

        if not result.is_trusted(self.config.allow_unverifiable_templates):
            self.stats.integrity_failures += 1
            raise TemplateIntegrityError(
                f"Template {template.id.value} failed integrity check: {result.status.value}",
                result=result,
            )
        return template, result

    def build(
        self,
        template_id: Union[TemplateId, str],
        text: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
        user_id: Optional[str] = None,
    ) -> PipelineResult:
        """
        Execute the full build for one template.

        Args:
            template_id: Template to build.
            text: Natural-language request. The template's default prompt
                is used when blank.
            overrides: Placeholder values supplied by the caller. They take
                precedence over values found in the request.
            user_id: Optional user ID for audit logging.

        Returns:
            PipelineResult. Generation errors are reported in ``errors``
            rather than raised.

        Raises:
            KeyError: If the template id is unknown.
            TemplateIntegrityError: If the template is not trusted.
        """
        start_time = time.time()
        session_id = str(uuid.uuid4())
        result = PipelineResult(success=False, session_id=session_id)

        try:
            logger.info("Step 1: Resolving template")
            template, integrity = self.resolve_template(template_id, session_id=session_id)
            result.template_id = template.id
            result.integrity = integrity

            logger.info("Step 2: Interpreting request")
            prompt = text if text and text.strip() else DEFAULT_PROMPTS[template.id]
            intent = self.interpret(prompt, session_id=session_id)
            result.intent = intent

            placeholders = self._merge_placeholders(template, intent, overrides)
            result.placeholders = placeholders

            logger.info("Step 3: Validating inputs")
            result.input_issues = self._validator.validate_inputs(template, placeholders)
            if has_errors(result.input_issues):
                logger.warning(
                    f"Input validation failed for {template.id.value}: "
                    f"{[i.message for i in result.input_issues if i.is_error]}"
                )
                return result

            logger.info("Step 4: Generating contract")
            contract = self._generate(template, placeholders, result, user_id)
            if contract is None:
                return result
            result.contract = contract

            logger.info("Step 5: Validating source")
            result.source_issues = self._validator.validate_source(contract.source)
            if self._audit_logger:
                self._audit_safely(
                    self._audit_logger.log_source_validated,
                    template.id, result.source_issues, session_id=session_id, user_id=user_id,
                )
            result.success = not has_errors(result.source_issues)
            return result
        finally:
            result.processing_time = time.time() - start_time
            self._update_stats(result)

    def _merge_placeholders(
        self,
        template: ContractTemplate,
        intent: Intent,
        overrides: Optional[Mapping[str, Any]],
    ) -> Dict[str, Any]:
        """Intent values for this template's keys, overlaid by caller values."""
        keys = {p.key for p in template.placeholders}
        merged: Dict[str, Any] = {
            k: v for k, v in intent.placeholders.items() if k in keys
        }
        if overrides:
            merged.update(overrides)
        return merged

    def _generate(
        self,
        template: ContractTemplate,
        placeholders: Mapping[str, Any],
        result: PipelineResult,
        user_id: Optional[str],
    ) -> Optional[GeneratedContract]:
        try:
            contract = self._generator.generate(template, placeholders)
        except GenerationError as e:
            logger.error(f"Contract generation failed: {e}")
            result.errors.append(e.to_dict())
            if self._audit_logger:
                self._audit_safely(
                    self._audit_logger.log_generation_failed,
                    template.id, e, session_id=result.session_id, user_id=user_id,
                )
            return None

        self.stats.generations += 1
        if self._audit_logger:
            self._audit_safely(
                self._audit_logger.log_contract_generated,
                contract, session_id=result.session_id, user_id=user_id,
            )
        return contract

    def _audit_safely(self, log_method, *args, **kwargs) -> None:
        """Write an audit record without letting storage errors abort a build."""
        try:
            log_method(*args, **kwargs)
        except Exception as e:
            name = getattr(log_method, "__name__", repr(log_method))
            logger.warning(f"Failed to write audit event via {name}: {e}")

    def _update_stats(self, result: PipelineResult) -> None:
        """Update pipeline statistics."""
        if result.success:
            self.stats.successful_builds += 1
        else:
            self.stats.failed_builds += 1
        self.stats.total_processing_time += result.processing_time

    def get_stats(self) -> PipelineStats:
        """Get pipeline execution statistics."""
        return self.stats

    def diagnostics(self) -> Dict[str, Any]:
        """
        Snapshot of the pipeline state for troubleshooting.

        Includes the statistics, the integrity status of every registered
        template and the effective configuration.
        """
        integrity = {
            tid.value: result.to_dict()
            for tid, result in self._registry.verify_all().items()
        }
        return {
            "stats": self.stats.to_dict(),
            "algorithm": self._registry.algorithm,
            "templates": integrity,
            "audit_logging": self._audit_logger is not None,
            "config": self.config.to_dict(),
        }

    def close(self) -> None:
        """Close the pipeline and release resources."""
        if self._audit_logger and self._owns_audit_logger:
            self._audit_logger.close()
        logger.info("Contract pipeline closed")
