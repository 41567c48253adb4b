"""Data models and enums for the STX Contract Builder."""

from .enums import (
    IntegrityStatus,
    IntentTemplate,
    IssueLevel,
    Keyword,
    PlaceholderType,
    TemplateId,
)
from .extraction import Deadline, ExtractedParams, Period
from .intent import Intent, ValidationIssue
from .template import (
    ContractMetadata,
    ContractTemplate,
    GeneratedContract,
    IntegrityResult,
    TemplateInput,
    TemplatePlaceholder,
)

__all__ = [
    # Enums
    "IntegrityStatus",
    "IntentTemplate",
    "IssueLevel",
    "Keyword",
    "PlaceholderType",
    "TemplateId",
    # Extraction models
    "Deadline",
    "ExtractedParams",
    "Period",
    # Intent models
    "Intent",
    "ValidationIssue",
    # Template models
    "ContractMetadata",
    "ContractTemplate",
    "GeneratedContract",
    "IntegrityResult",
    "TemplateInput",
    "TemplatePlaceholder",
]
