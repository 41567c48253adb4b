"""Data models for configuration management."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class PipelineConfig:
    """
    Configuration for the contract pipeline.

    Integrity policy: with ``require_verified_templates`` a template is only
    used when its integrity check passes. A check that could not run is
    accepted only if ``allow_unverifiable_templates`` is also set.
    """

    # Integrity
    fingerprint_algorithm: str = "sha256"
    require_verified_templates: bool = True
    allow_unverifiable_templates: bool = False
    # Template id -> expected fingerprint, merged over the built-in table.
    template_hashes: Dict[str, str] = field(default_factory=dict)

    # Limits
    max_source_length: int = 16_000
    max_string_length: int = 256

    # Intent mapping
    blocks_per_day: int = 144

    # Audit
    enable_audit_logging: bool = False
    database_url: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ValidationResult:
    """Result of configuration validation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error message."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        """Merge another validation result into this one."""
        return ValidationResult(
            is_valid=self.is_valid and other.is_valid,
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings
        )


class ConfigurationError(Exception):
    """Exception raised for configuration errors."""

    def __init__(self, message: str, validation_result: Optional[ValidationResult] = None):
        super().__init__(message)
        self.message = message
        self.validation_result = validation_result
