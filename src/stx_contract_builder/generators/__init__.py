"""Contract generation components for the STX Contract Builder."""

from .contract_generator import ContractGenerator, generate_contract
from .exceptions import (
    GenerationError,
    InvalidPlaceholderValueError,
    MissingPlaceholderError,
    UnsupportedPlaceholderTypeError,
)
from .sanitizers import (
    MAX_STRING_LENGTH,
    MAX_UINT,
    SANITIZERS,
    sanitize_buffer,
    sanitize_principal,
    sanitize_string,
    sanitize_uint,
    sanitize_value,
)

__all__ = [
    "ContractGenerator",
    "generate_contract",
    "GenerationError",
    "InvalidPlaceholderValueError",
    "MissingPlaceholderError",
    "UnsupportedPlaceholderTypeError",
    "MAX_STRING_LENGTH",
    "MAX_UINT",
    "SANITIZERS",
    "sanitize_buffer",
    "sanitize_principal",
    "sanitize_string",
    "sanitize_uint",
    "sanitize_value",
]
