"""Intent and validation issue models for the STX Contract Builder."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .enums import IntentTemplate, IssueLevel


@dataclass(frozen=True)
class ValidationIssue:
    """A non-fatal finding reported by validation."""
    level: IssueLevel
    message: str

    @property
    def is_error(self) -> bool:
        return self.level is IssueLevel.ERROR

    def to_dict(self) -> Dict[str, str]:
        return {"level": self.level.value, "message": self.message}


@dataclass
class Intent:
    """
    Interpretation of a natural-language contract request.

    Placeholder values are strings and have not been sanitized yet; the
    generator validates them. Mapping is positional, so the result is a
    best guess that the user has to confirm using the suggestions and the
    confidence score.
    """
    template: IntentTemplate
    placeholders: Dict[str, str] = field(default_factory=dict)
    confidence: float = 0.5
    issues: List[ValidationIssue] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.placeholders is None:
            self.placeholders = {}
        if self.issues is None:
            self.issues = []
        if self.suggestions is None:
            self.suggestions = []

    @property
    def is_actionable(self) -> bool:
        """True when a concrete template was chosen."""
        return self.template is not IntentTemplate.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        return {
            "template": self.template.value,
            "placeholders": dict(self.placeholders),
            "confidence": self.confidence,
            "issues": [issue.to_dict() for issue in self.issues],
            "suggestions": list(self.suggestions),
        }
