"""Contract generator implementation for the STX Contract Builder."""

import logging
import re
from typing import Dict, List

from ..interfaces.generator import IContractGenerator
from ..models.template import (
    ContractMetadata,
    ContractTemplate,
    GeneratedContract,
    TemplateInput,
)
from .exceptions import MissingPlaceholderError
from .sanitizers import MAX_STRING_LENGTH, sanitize_value


logger = logging.getLogger(__name__)

MARKER_PATTERN = re.compile(r"\{\{([^{}]+?)\}\}")


class ContractGenerator(IContractGenerator):
    """
    Template filler with type-specific sanitization.

    Every value is sanitized before any substitution happens, so a
    failure leaves nothing half-generated. Substitution is a single pass
    over the original source: text inserted by one value is never
    re-scanned for markers.
    """

    def __init__(self, max_string_length: int = MAX_STRING_LENGTH):
        self.max_string_length = max_string_length

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
            GeneratedContract whose metadata lists the filled keys in
            template declaration order.

        Raises:
            MissingPlaceholderError: If a required key is absent.
            InvalidPlaceholderValueError: If a value fails sanitization.
            UnsupportedPlaceholderTypeError: If a placeholder type has no
                sanitizer.
        """
        for placeholder in template.placeholders:
            if placeholder.required and placeholder.key not in template_input:
                raise MissingPlaceholderError(
                    f"Missing required placeholder: {placeholder.key}",
                    key=placeholder.key,
                )

        rendered: Dict[str, str] = {}
        filled: List[str] = []
        for placeholder in template.placeholders:
            if placeholder.key in template_input:
                rendered[placeholder.key] = sanitize_value(
                    placeholder,
                    template_input[placeholder.key],
                    max_string_length=self.max_string_length,
                )
                filled.append(placeholder.key)

        source = MARKER_PATTERN.sub(
            lambda m: rendered.get(m.group(1), m.group(0)), template.source
        )

        logger.info(
            f"Generated {getattr(template.id, 'value', template.id)} contract v{template.version} "
            f"with {len(filled)}/{len(template.placeholders)} placeholders filled"
        )
        return GeneratedContract(
            template_id=template.id,
            source=source,
            metadata=ContractMetadata(version=template.version, filled_keys=tuple(filled)),
        )


_default_generator = ContractGenerator()


def generate_contract(
    template: ContractTemplate,
    template_input: TemplateInput,
) -> GeneratedContract:
    """Generate a contract using the default generator."""
    return _default_generator.generate(template, template_input)
