"""Configuration Manager implementation for the STX Contract Builder.

This module loads, validates and persists the pipeline configuration.
Configuration can come from a JSON file, a dictionary, or environment
variables prefixed with ``STX_BUILDER_``.
"""

import json
import logging
import os
import re
from dataclasses import fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ..models.enums import TemplateId
from ..templates.registry import FINGERPRINT_FUNCTIONS, ROLLING, SHA256
from .models import ConfigurationError, PipelineConfig, ValidationResult


logger = logging.getLogger(__name__)

ENV_PREFIX = "STX_BUILDER_"

_BOOL_FIELDS = (
    "require_verified_templates",
    "allow_unverifiable_templates",
    "enable_audit_logging",
)
_POSITIVE_INT_FIELDS = (
    "max_source_length",
    "max_string_length",
    "blocks_per_day",
)
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")
_HEX_RE = re.compile(r"[0-9a-f]+")
_FINGERPRINT_LENGTHS = {SHA256: 64, ROLLING: 8}

# Environment variable suffix -> config field
ENV_FIELDS = {
    "FINGERPRINT_ALGORITHM": "fingerprint_algorithm",
    "REQUIRE_VERIFIED_TEMPLATES": "require_verified_templates",
    "ALLOW_UNVERIFIABLE_TEMPLATES": "allow_unverifiable_templates",
    "MAX_SOURCE_LENGTH": "max_source_length",
    "MAX_STRING_LENGTH": "max_string_length",
    "BLOCKS_PER_DAY": "blocks_per_day",
    "ENABLE_AUDIT_LOGGING": "enable_audit_logging",
    "DATABASE_URL": "database_url",
    "LOG_LEVEL": "log_level",
}

_TRUTHY = {"1", "true", "yes", "y", "on"}
_FALSY = {"0", "false", "no", "n", "off"}


class ConfigurationManager:
    """
    Manager for pipeline configuration.

    Handles loading, validation, environment overrides and persistence.
    Invalid configuration is never applied: the previous configuration
    stays in place and a ConfigurationError is raised.
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """
        Initialize the configuration manager.

        Args:
            config_path: Optional JSON file used by ``load()`` and ``save()``
                when no explicit source or target is given.
        """
        self._config_path = Path(config_path) if config_path else None
        self._configuration = PipelineConfig()
        self._is_loaded = False

    @property
    def configuration(self) -> PipelineConfig:
        """Get the current pipeline configuration."""
        return self._configuration

    @property
    def is_loaded(self) -> bool:
        """Check if configuration has been loaded."""
        return self._is_loaded

    def load(
        self,
        source: Optional[Union[str, Path, Dict[str, Any]]] = None,
    ) -> ValidationResult:
        """
        Load and validate configuration.

        Args:
            source: JSON file path or dictionary. Defaults to the path given
                at construction.

        Returns:
            ValidationResult, possibly carrying warnings.

        Raises:
            ConfigurationError: If the configuration is invalid or missing.
        """
        if source is None:
            if self._config_path is None:
                raise ConfigurationError("No configuration source specified")
            source = self._config_path

        raw_data = self._parse_source(source)
        if not isinstance(raw_data, dict):
            raise ConfigurationError("Configuration must be a JSON object")

        data = self.to_dict()
        data.update(raw_data)
        result, config = self._validate_config(data)

        if not result.is_valid or config is None:
            raise ConfigurationError(
                "Pipeline configuration validation failed",
                validation_result=result
            )

        for warning in result.warnings:
            logger.warning(f"Configuration warning: {warning}")

        self._configuration = config
        self._is_loaded = True
        return result

    def apply_env_overrides(
        self,
        environ: Optional[Mapping[str, str]] = None,
    ) -> ValidationResult:
        """
        Apply ``STX_BUILDER_*`` environment variables on top of the
        current configuration.

        Raises:
            ConfigurationError: If an override is invalid.
        """
        environ = os.environ if environ is None else environ
        data = self.to_dict()
        result = ValidationResult(is_valid=True)
        applied = []

        for suffix, field_name in ENV_FIELDS.items():
            raw = environ.get(ENV_PREFIX + suffix)
            if raw is None:
                continue
            try:
                data[field_name] = self._coerce_env_value(field_name, raw)
                applied.append(field_name)
            except ValueError as e:
                result.add_error(f"{ENV_PREFIX}{suffix}: {e}")

        if not result.is_valid:
            raise ConfigurationError(
                "Invalid environment configuration", validation_result=result
            )
        if not applied:
            return result

        validated, config = self._validate_config(data)
        result = result.merge(validated)
        if not result.is_valid or config is None:
            raise ConfigurationError(
                "Invalid environment configuration", validation_result=result
            )

        logger.info(f"Applied environment overrides: {applied}")
        self._configuration = config
        self._is_loaded = True
        return result

    def _coerce_env_value(self, field_name: str, raw: str) -> Any:
        value = raw.strip()
        if field_name in _BOOL_FIELDS:
            if value.lower() in _TRUTHY:
                return True
            if value.lower() in _FALSY:
                return False
            raise ValueError(f"expected a boolean, got '{raw}'")
        if field_name in _POSITIVE_INT_FIELDS:
            try:
                return int(value)
            except ValueError:
                raise ValueError(f"expected an integer, got '{raw}'") from None
        if field_name == "database_url":
            return value or None
        return value

    def validate_configuration(self) -> ValidationResult:
        """Validate the currently applied configuration."""
        result, _ = self._validate_config(self.to_dict())
        return result

    def _validate_config(
        self,
        data: Dict[str, Any],
    ) -> Tuple[ValidationResult, Optional[PipelineConfig]]:
        """Validate a configuration dictionary and build a PipelineConfig."""
        result = ValidationResult(is_valid=True)
        known = {f.name for f in fields(PipelineConfig)}

        for key in data:
            if key not in known:
                result.add_warning(f"Unknown configuration key '{key}' ignored")

        algorithm = data.get("fingerprint_algorithm")
        if algorithm not in FINGERPRINT_FUNCTIONS:
            result.add_error(
                f"'fingerprint_algorithm' must be one of {sorted(FINGERPRINT_FUNCTIONS)}"
            )

        for name in _BOOL_FIELDS:
            if not isinstance(data.get(name), bool):
                result.add_error(f"'{name}' must be a boolean")

        for name in _POSITIVE_INT_FIELDS:
            value = data.get(name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                result.add_error(f"'{name}' must be a positive integer")

        database_url = data.get("database_url")
        if database_url is not None and (
            not isinstance(database_url, str) or not database_url.strip()
        ):
            result.add_error("'database_url' must be a non-empty string or null")

        log_level = data.get("log_level")
        if not isinstance(log_level, str) or log_level.upper() not in _LOG_LEVELS:
            result.add_error(f"'log_level' must be one of {list(_LOG_LEVELS)}")

        hashes = self._validate_template_hashes(data.get("template_hashes"), algorithm, result)

        if data.get("enable_audit_logging") is True and not database_url:
            result.add_warning("Audit logging enabled without 'database_url'; using the default database")

        if not result.is_valid:
            return result, None

        config = PipelineConfig(
            fingerprint_algorithm=algorithm,
            require_verified_templates=data["require_verified_templates"],
            allow_unverifiable_templates=data["allow_unverifiable_templates"],
            template_hashes=hashes,
            max_source_length=data["max_source_length"],
            max_string_length=data["max_string_length"],
            blocks_per_day=data["blocks_per_day"],
            enable_audit_logging=data["enable_audit_logging"],
            database_url=database_url.strip() if database_url else None,
            log_level=log_level.upper(),
        )
        return result, config

    def _validate_template_hashes(
        self,
        hashes: Any,
        algorithm: Any,
        result: ValidationResult,
    ) -> Dict[str, str]:
        """Validate fingerprint overrides and normalize their keys."""
        if hashes is None:
            return {}
        if not isinstance(hashes, dict):
            result.add_error("'template_hashes' must be an object")
            return {}

        valid_ids = [t.value for t in TemplateId]
        normalized: Dict[str, str] = {}
        for key, value in hashes.items():
            template_id = str(key).strip().upper()
            if template_id not in valid_ids:
                result.add_error(
                    f"'template_hashes': unknown template id '{key}' (expected one of {valid_ids})"
                )
                continue
            if not isinstance(value, str) or not _HEX_RE.fullmatch(value.strip().lower()):
                result.add_error(f"'template_hashes.{template_id}' must be a hex string")
                continue
            fingerprint_value = value.strip().lower()
            expected_length = _FINGERPRINT_LENGTHS.get(algorithm)
            if expected_length and len(fingerprint_value) != expected_length:
                result.add_warning(
                    f"'template_hashes.{template_id}' has length {len(fingerprint_value)}, "
                    f"expected {expected_length} for {algorithm}"
                )
            normalized[template_id] = fingerprint_value
        return normalized

    def _parse_source(
        self,
        source: Union[str, Path, Dict[str, Any]],
    ) -> Any:
        """Parse configuration source to raw data."""
        if isinstance(source, dict):
            return source
        path = Path(source)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in configuration file {path}: {e}")

    def save(self, path: Optional[Union[str, Path]] = None) -> Path:
        """
        Save the current configuration as JSON.

        Raises:
            ConfigurationError: If no target path is known.
        """
        target = Path(path) if path else self._config_path
        if target is None:
            raise ConfigurationError("No configuration path specified")
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        return target

    def reset(self) -> None:
        """Reset to the default configuration."""
        self._configuration = PipelineConfig()
        self._is_loaded = False

    def to_dict(self) -> Dict[str, Any]:
        """Export the current configuration as a dictionary."""
        return self._configuration.to_dict()
