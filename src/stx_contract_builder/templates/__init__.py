"""Contract template library and registry for the STX Contract Builder."""

from .library import (
    DEFAULT_PROMPTS,
    ESCROW_TEMPLATE,
    SPLIT_TEMPLATE,
    SUBSCRIPTION_TEMPLATE,
    TEMPLATES,
    coerce_template_id,
    get_template,
)
from .registry import (
    LEGACY_TEMPLATE_HASHES,
    REGISTRY,
    ROLLING,
    SHA256,
    TEMPLATE_HASHES,
    TemplateRegistry,
    fingerprint,
    rolling_fingerprint,
    sha256_fingerprint,
    verify_template_integrity,
)

__all__ = [
    "DEFAULT_PROMPTS",
    "ESCROW_TEMPLATE",
    "SPLIT_TEMPLATE",
    "SUBSCRIPTION_TEMPLATE",
    "TEMPLATES",
    "coerce_template_id",
    "get_template",
    "LEGACY_TEMPLATE_HASHES",
    "REGISTRY",
    "ROLLING",
    "SHA256",
    "TEMPLATE_HASHES",
    "TemplateRegistry",
    "fingerprint",
    "rolling_fingerprint",
    "sha256_fingerprint",
    "verify_template_integrity",
]
