"""Intent mapping components for the STX Contract Builder."""

from .intent_mapper import (
    BLOCKS_PER_DAY,
    MICRO_STX_PER_STX,
    IntentMapper,
    interpret_natural_language,
    map_to_intent,
)

__all__ = [
    "BLOCKS_PER_DAY",
    "MICRO_STX_PER_STX",
    "IntentMapper",
    "interpret_natural_language",
    "map_to_intent",
]
