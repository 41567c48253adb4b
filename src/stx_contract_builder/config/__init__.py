"""Configuration management for the STX Contract Builder."""

from .config_manager import ENV_PREFIX, ConfigurationManager
from .models import (
    ConfigurationError,
    PipelineConfig,
    ValidationResult,
)

__all__ = [
    "ENV_PREFIX",
    "ConfigurationManager",
    "ConfigurationError",
    "PipelineConfig",
    "ValidationResult",
]
