"""Enumerations for the STX Contract Builder."""

from enum import Enum
from typing import Optional


class TemplateId(Enum):
    """Identifiers of the canonical contract templates."""
    ESCROW = "ESCROW"
    SPLIT = "SPLIT"
    SUBSCRIPTION = "SUBSCRIPTION"


class IntentTemplate(Enum):
    """Template chosen by the intent mapper for a natural-language request."""
    ESCROW = "ESCROW"
    SPLIT = "SPLIT"
    SUBSCRIPTION = "SUBSCRIPTION"
    UNKNOWN = "UNKNOWN"

    def to_template_id(self) -> Optional[TemplateId]:
        """Return the registry id for this intent, or None for UNKNOWN."""
        if self is IntentTemplate.UNKNOWN:
            return None
        return TemplateId(self.value)


class PlaceholderType(Enum):
    """Value types a template placeholder can hold."""
    UINT = "uint"
    PRINCIPAL = "principal"
    STRING = "string"
    BUFFER = "buffer"


class Keyword(Enum):
    """Domain tags detected in natural-language requests."""
    ESCROW = "escrow"
    SPLIT = "split"
    SUBSCRIPTION = "subscription"
    DELIVERY = "delivery"
    DEADLINE = "deadline"


class IssueLevel(Enum):
    """Severity of a validation issue."""
    ERROR = "error"
    WARNING = "warning"


class IntegrityStatus(Enum):
    """Outcome of a template integrity check."""
    VERIFIED = "verified"
    MISMATCH = "mismatch"
    UNVERIFIABLE = "unverifiable"
