"""
STX Contract Builder

Turns natural-language requests into Clarity smart contracts by filling
integrity-checked templates with sanitized values.
"""

__version__ = "0.1.0"

# Export main components
from .extractors import IntentExtractor, extract_params
from .mapping import IntentMapper, interpret_natural_language, map_to_intent
from .models.enums import (
    IntegrityStatus,
    IntentTemplate,
    IssueLevel,
    Keyword,
    PlaceholderType,
    TemplateId,
)
from .models.extraction import Deadline, ExtractedParams, Period
from .models.intent import Intent, ValidationIssue
from .models.template import (
    ContractMetadata,
    ContractTemplate,
    GeneratedContract,
    IntegrityResult,
    TemplatePlaceholder,
)
from .templates import (
    DEFAULT_PROMPTS,
    REGISTRY,
    TEMPLATES,
    TemplateRegistry,
    get_template,
    verify_template_integrity,
)
from .generators import ContractGenerator, GenerationError, generate_contract
from .validation import ContractValidator, validate_clarity_source, validate_inputs
from .interfaces.audit import AuditEvent, AuditEventType, AuditLog, IAuditLogger
from .audit import AuditLogger, DatabaseManager
from .config import (
    ConfigurationManager,
    ConfigurationError,
    PipelineConfig,
    ValidationResult,
)
from .pipeline import (
    ContractPipeline,
    PipelineResult,
    PipelineStats,
    TemplateIntegrityError,
)

__all__ = [
    "IntentExtractor",
    "extract_params",
    "IntentMapper",
    "interpret_natural_language",
    "map_to_intent",
    "IntegrityStatus",
    "IntentTemplate",
    "IssueLevel",
    "Keyword",
    "PlaceholderType",
    "TemplateId",
    "Deadline",
    "ExtractedParams",
    "Period",
    "Intent",
    "ValidationIssue",
    "ContractMetadata",
    "ContractTemplate",
    "GeneratedContract",
    "IntegrityResult",
    "TemplatePlaceholder",
    "DEFAULT_PROMPTS",
    "REGISTRY",
    "TEMPLATES",
    "TemplateRegistry",
    "get_template",
    "verify_template_integrity",
    "ContractGenerator",
    "GenerationError",
    "generate_contract",
    "ContractValidator",
    "validate_clarity_source",
    "validate_inputs",
    "AuditEvent",
    "AuditEventType",
    "AuditLog",
    "IAuditLogger",
    "AuditLogger",
    "DatabaseManager",
    "ConfigurationManager",
    "ConfigurationError",
    "PipelineConfig",
    "ValidationResult",
    "ContractPipeline",
    "PipelineResult",
    "PipelineStats",
    "TemplateIntegrityError",
]
