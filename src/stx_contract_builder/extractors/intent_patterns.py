"""Pattern definitions for intent extraction.

This module holds the regular expressions used to pull candidate
contract parameters (addresses, amounts, percentages, periods) and
domain keywords out of natural-language requests.
"""

import re
from dataclasses import dataclass
from typing import List, Pattern

from ..models.enums import Keyword


# Stacks-address-like tokens: "S", then "T" (testnet) or "P" (mainnet).
# The bare currency unit "STX" is not an address.
PRINCIPAL_PATTERN = re.compile(r"S[TP](?!X\b)[A-Za-z0-9.\-]+")

# Loose on purpose: any number, optionally tagged with a unit.
AMOUNT_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:stx|ustx|\$)?", re.IGNORECASE)

PERCENT_PATTERN = re.compile(r"(\d{1,3})%")
DAYS_PATTERN = re.compile(r"(\d+)\s*(?:day|days)", re.IGNORECASE)
BLOCKS_PATTERN = re.compile(r"(\d+)\s*(?:block|blocks)", re.IGNORECASE)

MAX_PRINCIPALS = 10

# Digits in the largest Clarity uint (2**128 - 1); longer counts are ignored.
MAX_COUNT_DIGITS = 39


@dataclass(frozen=True)
class KeywordPattern:
    """Pattern that tags a request with a domain keyword."""
    keyword: Keyword
    pattern: Pattern[str]

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None


def build_keyword_patterns() -> List[KeywordPattern]:
    """Build the keyword tests, in vocabulary order."""
    return [
        KeywordPattern(
            keyword=Keyword.ESCROW,
            pattern=re.compile(r"escrow", re.IGNORECASE),
        ),
        KeywordPattern(
            keyword=Keyword.SPLIT,
            pattern=re.compile(r"split|share|percentage", re.IGNORECASE),
        ),
        KeywordPattern(
            keyword=Keyword.SUBSCRIPTION,
            pattern=re.compile(
                r"subscribe|subscription|every month|monthly|period", re.IGNORECASE
            ),
        ),
        KeywordPattern(
            keyword=Keyword.DELIVERY,
            pattern=re.compile(r"deliver|delivery|milestone", re.IGNORECASE),
        ),
        KeywordPattern(
            keyword=Keyword.DEADLINE,
            pattern=re.compile(r"deadline|expire", re.IGNORECASE),
        ),
    ]
