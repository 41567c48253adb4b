"""Validation components for the STX Contract Builder."""

from .validator import (
    MAX_SOURCE_LENGTH,
    NO_PUBLIC_FUNCTIONS,
    SIZE_MAY_EXCEED_LIMITS,
    UNFILLED_PLACEHOLDERS,
    ContractValidator,
    has_errors,
    validate_clarity_source,
    validate_inputs,
)

__all__ = [
    "MAX_SOURCE_LENGTH",
    "NO_PUBLIC_FUNCTIONS",
    "SIZE_MAY_EXCEED_LIMITS",
    "UNFILLED_PLACEHOLDERS",
    "ContractValidator",
    "has_errors",
    "validate_clarity_source",
    "validate_inputs",
]
