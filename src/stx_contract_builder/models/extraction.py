"""Extraction data models for the STX Contract Builder."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Period:
    """A recurring interval mentioned in a request, in blocks or days."""
    blocks: Optional[int] = None
    days: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {key: value for key, value in (("blocks", self.blocks), ("days", self.days)) if value is not None}


@dataclass
class Deadline:
    """A deadline mentioned in a request, as a block height or in days."""
    block_height: Optional[int] = None
    days: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in (("block_height", self.block_height), ("days", self.days))
            if value is not None
        }


@dataclass
class ExtractedParams:
    """
    Candidate parameters extracted from free-form text.

    Produced fresh for every input and consumed by the intent mapper.
    Amounts are in whole STX, not yet scaled to micro-STX. Deadlines are
    never populated by the extractor; the field is kept so mappers and
    callers can supply them explicitly.
    """
    amounts: List[float] = field(default_factory=list)
    principals: List[str] = field(default_factory=list)
    percentages: List[int] = field(default_factory=list)
    periods: List[Period] = field(default_factory=list)
    deadlines: List[Deadline] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.amounts is None:
            self.amounts = []
        if self.principals is None:
            self.principals = []
        if self.percentages is None:
            self.percentages = []
        if self.periods is None:
            self.periods = []
        if self.deadlines is None:
            self.deadlines = []
        if self.keywords is None:
            self.keywords = []

    def has_keyword(self, keyword: Any) -> bool:
        """Check for a keyword given as a string or a Keyword enum member."""
        value = getattr(keyword, "value", keyword)
        return value in self.keywords

    def to_dict(self) -> Dict[str, Any]:
        return {
            "amounts": list(self.amounts),
            "principals": list(self.principals),
            "percentages": list(self.percentages),
            "periods": [p.to_dict() for p in self.periods],
            "deadlines": [d.to_dict() for d in self.deadlines],
            "keywords": list(self.keywords),
        }
