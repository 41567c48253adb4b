"""Intent mapper interface for the STX Contract Builder."""

from abc import ABC, abstractmethod

from ..models.extraction import ExtractedParams
from ..models.intent import Intent


class IIntentMapper(ABC):
    """
    Abstract interface for mapping extracted parameters to an intent.

    Implementations pick exactly one template and fill its placeholders.
    Mapping never fails; missing information is reported as suggestions.
    """

    @abstractmethod
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
        pass
