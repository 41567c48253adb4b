"""Intent mapper implementation for the STX Contract Builder.

Chooses a contract template from extracted parameters and fills its
placeholders positionally: the first address is the buyer, the second
the seller, and so on. The result is a best guess that the caller must
surface to the user together with the suggestions and confidence.
"""

import logging
import math
from typing import Dict, List, Optional

from ..extractors.intent_extractor import IntentExtractor
from ..interfaces.mapper import IIntentMapper
from ..models.enums import IntentTemplate, Keyword
from ..models.extraction import ExtractedParams
from ..models.intent import Intent


logger = logging.getLogger(__name__)

BLOCKS_PER_DAY = 144
MICRO_STX_PER_STX = 1_000_000

BASE_CONFIDENCE = 0.5
TEMPLATE_BONUS = 0.3
DETAIL_BONUS = 0.2

SUGGEST_PARTIES = "Provide buyer and seller Stacks addresses."
SUGGEST_ARBITER = "Provide an arbiter address or specify a time-based release."
SUGGEST_DEADLINE = "Add a block-height deadline for fallback release."
SUGGEST_PERCENTAGES = "Ensure percentages add up to 100."
SUGGEST_PERIOD = "Specify the period in blocks or days."
SUGGEST_AMOUNT = "Specify a smaller amount in STX."


def _nth(values: List, index: int):
    return values[index] if len(values) > index else None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class IntentMapper(IIntentMapper):
    """
    Heuristic mapper from extracted parameters to a template intent.

    Template selection is a fixed priority order: escrow, then split,
    then subscription, otherwise UNKNOWN.
    """

    def __init__(
        self,
        blocks_per_day: int = BLOCKS_PER_DAY,
        micro_units: int = MICRO_STX_PER_STX,
    ):
        self.blocks_per_day = blocks_per_day
        self.micro_units = micro_units

    def map(self, text: str, params: ExtractedParams) -> Intent:
        """
        Map extracted parameters to a template intent.

        Args:
            text: The original request text.
            params: Parameters extracted from the text.

        Returns:
            Intent with the chosen template, placeholder values,
            confidence and suggestions.
        """
        template = self.select_template(params)
        placeholders: Dict[str, str] = {}
        suggestions: List[str] = []

        if template is IntentTemplate.ESCROW:
            self._fill_escrow(params, placeholders, suggestions)
        elif template is IntentTemplate.SPLIT:
            self._fill_split(params, placeholders, suggestions)
        elif template is IntentTemplate.SUBSCRIPTION:
            self._fill_subscription(params, placeholders, suggestions)

        confidence = self.score(template, params)

        logger.debug(
            f"Mapped request to {template.value} with confidence {confidence:.2f} "
            f"and {len(suggestions)} suggestions"
        )
        return Intent(
            template=template,
            placeholders=placeholders,
            confidence=confidence,
            issues=[],
            suggestions=suggestions,
        )

    def select_template(self, params: ExtractedParams) -> IntentTemplate:
        """Pick exactly one template by priority order."""
        if params.has_keyword(Keyword.ESCROW):
            return IntentTemplate.ESCROW
        if params.has_keyword(Keyword.SPLIT) or len(params.percentages) >= 2:
            return IntentTemplate.SPLIT
        if params.has_keyword(Keyword.SUBSCRIPTION) or len(params.periods) > 0:
            return IntentTemplate.SUBSCRIPTION
        return IntentTemplate.UNKNOWN

    def score(self, template: IntentTemplate, params: ExtractedParams) -> float:
        """Additive confidence score, clamped to [0, 1]."""
        confidence = BASE_CONFIDENCE
        if template is not IntentTemplate.UNKNOWN:
            confidence += TEMPLATE_BONUS
        if (
            len(params.principals) >= 2
            or len(params.percentages) >= 2
            or len(params.periods) > 0
        ):
            confidence += DETAIL_BONUS
        return max(0.0, min(1.0, confidence))

    def _to_micro(self, amount: Optional[float]) -> Optional[int]:
        """Micro-unit value, or None when scaling overflows to infinity."""
        scaled = (amount or 0) * self.micro_units
        if not math.isfinite(scaled):
            logger.warning(f"Amount {amount} is too large to convert to micro-units")
            return None
        return _round_half_up(scaled)

    def _fill_amount(
        self,
        params: ExtractedParams,
        key: str,
        placeholders: Dict[str, str],
        suggestions: List[str],
    ) -> None:
        micro = self._to_micro(_nth(params.amounts, 0))
        placeholders[key] = str(micro if micro is not None else 0)
        if micro is None:
            suggestions.append(SUGGEST_AMOUNT)

    def _fill_escrow(
        self,
        params: ExtractedParams,
        placeholders: Dict[str, str],
        suggestions: List[str],
    ) -> None:
        first_deadline = _nth(params.deadlines, 0)
        first_period = _nth(params.periods, 0)
        # A zero or missing value falls through to the next source.
        deadline = (
            (first_deadline.block_height if first_deadline else None)
            or (first_period.blocks if first_period else None)
            or 0
        )

        placeholders["buyer"] = _nth(params.principals, 0) or ""
        placeholders["seller"] = _nth(params.principals, 1) or ""
        placeholders["arbiter"] = _nth(params.principals, 2) or ""
        placeholders["deadline-height"] = str(deadline)

        if not placeholders["buyer"] or not placeholders["seller"]:
            suggestions.append(SUGGEST_PARTIES)
        if not placeholders["arbiter"]:
            suggestions.append(SUGGEST_ARBITER)
        if deadline <= 0:
            suggestions.append(SUGGEST_DEADLINE)
        self._fill_amount(params, "amount-ustx", placeholders, suggestions)

    def _fill_split(
        self,
        params: ExtractedParams,
        placeholders: Dict[str, str],
        suggestions: List[str],
    ) -> None:
        pct_a = _nth(params.percentages, 0) or 0
        pct_b = _nth(params.percentages, 1) or 0

        placeholders["recipient-a"] = _nth(params.principals, 0) or ""
        placeholders["recipient-b"] = _nth(params.principals, 1) or ""
        placeholders["pct-a"] = str(pct_a)
        placeholders["pct-b"] = str(pct_b)

        if pct_a + pct_b != 100:
            suggestions.append(SUGGEST_PERCENTAGES)

    def _fill_subscription(
        self,
        params: ExtractedParams,
        placeholders: Dict[str, str],
        suggestions: List[str],
    ) -> None:
        first_period = _nth(params.periods, 0)
        period = 0
        if first_period is not None:
            if first_period.blocks:
                period = first_period.blocks
            elif first_period.days:
                period = first_period.days * self.blocks_per_day

        placeholders["provider"] = _nth(params.principals, 0) or ""
        placeholders["subscriber"] = _nth(params.principals, 1) or ""
        placeholders["period"] = str(period)
        if period <= 0:
            suggestions.append(SUGGEST_PERIOD)
        self._fill_amount(params, "price-ustx", placeholders, suggestions)


_default_extractor = IntentExtractor()
_default_mapper = IntentMapper()


def map_to_intent(text: str, params: ExtractedParams) -> Intent:
    """Map extracted parameters using the default mapper."""
    return _default_mapper.map(text, params)


def interpret_natural_language(text: str) -> Intent:
    """Extract parameters from text and map them to an intent."""
    return _default_mapper.map(text, _default_extractor.extract(text))
