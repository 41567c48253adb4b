"""Intent extraction components for the STX Contract Builder."""

from .intent_extractor import IntentExtractor, extract_params
from .intent_patterns import KeywordPattern, build_keyword_patterns

__all__ = [
    "IntentExtractor",
    "extract_params",
    "KeywordPattern",
    "build_keyword_patterns",
]
