"""Contract template data models for the STX Contract Builder."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from .enums import IntegrityStatus, PlaceholderType, TemplateId


# Caller-supplied placeholder values, untyped at the boundary.
TemplateInput = Mapping[str, Any]


@dataclass(frozen=True)
class TemplatePlaceholder:
    """
    A ``{{key}}`` slot in a template source.

    The declared type selects the sanitizer used when the slot is filled.
    """
    key: str
    type: PlaceholderType
    required: bool = True
    description: Optional[str] = None

    @property
    def marker(self) -> str:
        return "{{" + self.key + "}}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "type": getattr(self.type, "value", self.type),
            "required": self.required,
            "description": self.description,
        }


@dataclass(frozen=True)
class ContractTemplate:
    """
    Canonical Clarity contract template.

    Templates are process-wide constants and are never mutated; use
    ``dataclasses.replace`` to derive a modified copy.
    """
    id: TemplateId
    name: str
    description: str
    version: str
    source: str
    placeholders: Tuple[TemplatePlaceholder, ...] = field(default_factory=tuple)

    def get_placeholder(self, key: str) -> Optional[TemplatePlaceholder]:
        return next((p for p in self.placeholders if p.key == key), None)

    @property
    def required_keys(self) -> Tuple[str, ...]:
        return tuple(p.key for p in self.placeholders if p.required)

    def to_dict(self, include_source: bool = True) -> Dict[str, Any]:
        data = {
            "id": self.id.value,
            "name": self.name,
            "description": self.description,
            "version": self.version,
            "placeholders": [p.to_dict() for p in self.placeholders],
        }
        if include_source:
            data["source"] = self.source
        return data


@dataclass(frozen=True)
class ContractMetadata:
    """Generation metadata recorded alongside a generated contract."""
    version: str
    filled_keys: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class GeneratedContract:
    """Contract source produced by filling a template."""
    template_id: TemplateId
    source: str
    metadata: ContractMetadata

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_id": self.template_id.value,
            "source": self.source,
            "metadata": {
                "version": self.metadata.version,
                "filled_keys": list(self.metadata.filled_keys),
            },
        }


@dataclass(frozen=True)
class IntegrityResult:
    """
    Result of checking a template source against its expected fingerprint.

    ``VERIFIED`` means the check ran and matched, ``MISMATCH`` means it ran
    and failed (including templates with no expected fingerprint), and
    ``UNVERIFIABLE`` means the check could not run. What to do with the
    last case is the caller's decision.
    """
    template_id: Any
    status: IntegrityStatus
    algorithm: str
    expected: Optional[str] = None
    actual: Optional[str] = None
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status is IntegrityStatus.VERIFIED

    def is_trusted(self, allow_unverifiable: bool = False) -> bool:
        """Apply a trust policy to this result."""
        if self.status is IntegrityStatus.VERIFIED:
            return True
        if self.status is IntegrityStatus.UNVERIFIABLE:
            return allow_unverifiable
        return False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template_id": getattr(self.template_id, "value", self.template_id),
            "status": self.status.value,
            "algorithm": self.algorithm,
            "expected": self.expected,
            "actual": self.actual,
            "error": self.error,
        }
