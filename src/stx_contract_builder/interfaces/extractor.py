"""Intent extractor interface for the STX Contract Builder."""

from abc import ABC, abstractmethod

from ..models.extraction import ExtractedParams


class IIntentExtractor(ABC):
    """
    Abstract interface for natural-language parameter extraction.

    Implementations turn free-form request text into candidate contract
    parameters. Extraction is total: it never raises for string input.
    """

    @abstractmethod
    def extract(self, text: str) -> ExtractedParams:
        """
        Extract candidate parameters from request text.

        Args:
            text: The free-form request.

        Returns:
            ExtractedParams with every field populated (possibly empty).
        """
        pass

    @abstractmethod
    def serialize(self, params: ExtractedParams) -> str:
        """
        Serialize ExtractedParams to a JSON string.

        Args:
            params: The extraction result to serialize.

        Returns:
            JSON string representation of the parameters.
        """
        pass

    @abstractmethod
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
        pass
