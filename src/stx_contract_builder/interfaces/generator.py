"""Contract generator interface for the STX Contract Builder."""

from abc import ABC, abstractmethod

from ..models.template import ContractTemplate, GeneratedContract, TemplateInput


class IContractGenerator(ABC):
    """
    Abstract interface for contract generation.

    Implementations fill a template's placeholders with sanitized values.
    Generation is all-or-nothing: any invalid or missing value aborts it.
    """

    @abstractmethod
    def generate(
        self,
        template: ContractTemplate,
        template_input: TemplateInput,
    ) -> GeneratedContract:
        """
        Generate contract source from a template.

        Args:
            template: The template to fill.
            template_input: Mapping of placeholder key to raw value.

        Returns:
            GeneratedContract with every supplied placeholder substituted.

        Raises:
            GenerationError: If a required value is missing or a value
                fails sanitization.
        """
        pass
