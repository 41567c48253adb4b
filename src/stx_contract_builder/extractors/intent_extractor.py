"""Intent extractor implementation for the STX Contract Builder.

This module implements the IIntentExtractor interface to pull candidate
contract parameters out of free-form request text.
"""

import json
import logging
import math
from typing import Any, List, Optional

from ..interfaces.extractor import IIntentExtractor
from ..models.extraction import Deadline, ExtractedParams, Period
from .intent_patterns import (
    AMOUNT_PATTERN,
    BLOCKS_PATTERN,
    DAYS_PATTERN,
    MAX_COUNT_DIGITS,
    MAX_PRINCIPALS,
    PERCENT_PATTERN,
    PRINCIPAL_PATTERN,
    KeywordPattern,
    build_keyword_patterns,
)


logger = logging.getLogger(__name__)


class IntentExtractor(IIntentExtractor):
    """
    Regex-based parameter extractor for contract requests.

    Every field is extracted independently; absence of a pattern yields
    an empty field rather than an error.
    """

    def __init__(self, max_principals: int = MAX_PRINCIPALS):
        self._max_principals = max_principals
        self._keyword_patterns: List[KeywordPattern] = build_keyword_patterns()

    def extract(self, text: str) -> ExtractedParams:
        """
        Extract candidate parameters from request text.

        Args:
            text: The free-form request. ``None`` is treated as empty.

        Returns:
            ExtractedParams with every field populated (possibly empty).
        """
        text = text or ""

        params = ExtractedParams(
            amounts=self._extract_amounts(text),
            principals=self._extract_principals(text),
            percentages=self._extract_percentages(text),
            periods=self._extract_periods(text),
            deadlines=[],
            keywords=self._extract_keywords(text),
        )

        logger.debug(
            f"Extracted {len(params.principals)} principals, "
            f"{len(params.amounts)} amounts, {len(params.percentages)} percentages, "
            f"{len(params.periods)} periods, keywords={params.keywords}"
        )
        return params

    def _extract_principals(self, text: str) -> List[str]:
        """Addresses in order of appearance, duplicates kept."""
        return PRINCIPAL_PATTERN.findall(text)[: self._max_principals]

    def _extract_percentages(self, text: str) -> List[int]:
        return [int(m.group(1)) for m in PERCENT_PATTERN.finditer(text)]

    def _extract_amounts(self, text: str) -> List[float]:
        amounts = []
        for match in AMOUNT_PATTERN.finditer(text):
            value = float(match.group(1))
            if math.isfinite(value):
                amounts.append(value)
        return amounts

    def _extract_periods(self, text: str) -> List[Period]:
        """At most one day-based entry followed by at most one block-based entry."""
        periods: List[Period] = []
        days = DAYS_PATTERN.search(text)
        if days:
            count = _parse_count(days.group(1))
            if count is not None:
                periods.append(Period(days=count))
        blocks = BLOCKS_PATTERN.search(text)
        if blocks:
            count = _parse_count(blocks.group(1))
            if count is not None:
                periods.append(Period(blocks=count))
        return periods

    def _extract_keywords(self, text: str) -> List[str]:
        return [kp.keyword.value for kp in self._keyword_patterns if kp.matches(text)]

    def serialize(self, params: ExtractedParams) -> str:
        """
        Serialize ExtractedParams to a JSON string.

        Args:
            params: The extraction result to serialize.

        Returns:
            JSON string representation of the parameters.
        """
        return json.dumps(params.to_dict(), ensure_ascii=False, indent=2)

    def deserialize(self, json_str: str) -> ExtractedParams:
        """
        Deserialize a JSON string to ExtractedParams.

        Args:
            json_str: JSON string to deserialize.

        Returns:
            ExtractedParams reconstructed from the JSON.

        Raises:
            ValueError: If the JSON is invalid or malformed.
        """
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON: {str(e)}")

        return self._dict_to_params(data)

    def _dict_to_params(self, data: Any) -> ExtractedParams:
        if not isinstance(data, dict):
            raise ValueError("Expected dictionary for ExtractedParams")

        for field_name in ("amounts", "principals", "percentages", "periods", "deadlines", "keywords"):
            if not isinstance(data.get(field_name, []), list):
                raise ValueError(f"Field '{field_name}' must be a list")

        return ExtractedParams(
            amounts=[float(a) for a in data.get("amounts", [])],
            principals=[str(p) for p in data.get("principals", [])],
            percentages=[int(p) for p in data.get("percentages", [])],
            periods=[
                Period(blocks=_optional_int(p, "blocks"), days=_optional_int(p, "days"))
                for p in data.get("periods", [])
            ],
            deadlines=[
                Deadline(
                    block_height=_optional_int(d, "block_height"),
                    days=_optional_int(d, "days"),
                )
                for d in data.get("deadlines", [])
            ],
            keywords=[str(k) for k in data.get("keywords", [])],
        )


def _parse_count(digits: str) -> Optional[int]:
    """Block or day count, or None when the digit run is too long to be one."""
    if len(digits.lstrip("0")) > MAX_COUNT_DIGITS:
        logger.debug(f"Ignoring {len(digits)}-digit period count")
        return None
    return int(digits)


def _optional_int(data: Any, key: str) -> Optional[int]:
    if not isinstance(data, dict):
        raise ValueError(f"Expected dictionary with optional '{key}'")
    value = data.get(key)
    return None if value is None else int(value)


_default_extractor = IntentExtractor()


def extract_params(text: str) -> ExtractedParams:
    """Extract candidate parameters using the default extractor."""
    return _default_extractor.extract(text)
