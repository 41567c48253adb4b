"""Exceptions raised during contract generation."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(eq=False)
class GenerationError(Exception):
    """
    Base exception for contract generation errors.

    Generation is all-or-nothing, so any of these aborts the whole call.
    The offending placeholder key is carried so callers can attach the
    message to the matching form field.

    Attributes:
        message: Human-readable error description.
        key: Placeholder key that caused the error, if any.
        details: Additional error details.
    """
    message: str
    key: Optional[str] = None
    details: Optional[dict] = field(default_factory=dict)

    def __post_init__(self):
        if self.details is None:
            self.details = {}
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = [self.message]
        if self.key:
            parts.append(f"Placeholder: {self.key}")
        return " | ".join(parts)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "key": self.key,
            "details": self.details,
        }


@dataclass(eq=False)
class MissingPlaceholderError(GenerationError):
    """A required placeholder was not supplied."""


@dataclass(eq=False)
class InvalidPlaceholderValueError(GenerationError):
    """A supplied value failed sanitization for its declared type."""


@dataclass(eq=False)
class UnsupportedPlaceholderTypeError(GenerationError):
    """A placeholder declares a type the generator cannot render."""
