"""Static validation of template inputs and generated contract source.

Validation never raises. It returns a list of issues and leaves the
decision to block deployment to the caller.
"""

import logging
import re
from typing import Iterable, List

from ..generators.exceptions import GenerationError
from ..generators.sanitizers import MAX_STRING_LENGTH, sanitize_value
from ..models.enums import IssueLevel, PlaceholderType
from ..models.intent import ValidationIssue
from ..models.template import ContractTemplate, TemplateInput


logger = logging.getLogger(__name__)

PUBLIC_FUNCTION_MARKER = "(define-public"
MAX_SOURCE_LENGTH = 16_000
UNFILLED_PLACEHOLDER_PATTERN = re.compile(r"\{\{.*?\}\}")

NO_PUBLIC_FUNCTIONS = "No public functions found"
SIZE_MAY_EXCEED_LIMITS = "Contract size may exceed limits"
UNFILLED_PLACEHOLDERS = "Unfilled placeholders remain"

_INPUT_MESSAGES = {
    PlaceholderType.UINT: "{key} must be a positive integer",
    PlaceholderType.PRINCIPAL: "{key} is not a valid principal",
    PlaceholderType.BUFFER: "{key} must be a hex buffer",
}


def validate_clarity_source(
    source: str,
    max_length: int = MAX_SOURCE_LENGTH,
) -> List[ValidationIssue]:
    """
    Inspect generated contract source.

    Args:
        source: Contract source text.
        max_length: Size above which a warning is reported.

    Returns:
        Issues found: warnings when no public function is declared or the
        source is larger than ``max_length``, and an error when any
        ``{{...}}`` marker is left in the source.
    """
    issues: List[ValidationIssue] = []
    if PUBLIC_FUNCTION_MARKER not in source:
        issues.append(ValidationIssue(IssueLevel.WARNING, NO_PUBLIC_FUNCTIONS))
    if len(source) > max_length:
        issues.append(ValidationIssue(IssueLevel.WARNING, SIZE_MAY_EXCEED_LIMITS))
    if UNFILLED_PLACEHOLDER_PATTERN.search(source):
        issues.append(ValidationIssue(IssueLevel.ERROR, UNFILLED_PLACEHOLDERS))
    return issues


def validate_inputs(
    template: ContractTemplate,
    template_input: TemplateInput,
    max_string_length: int = MAX_STRING_LENGTH,
) -> List[ValidationIssue]:
    """
    Check placeholder values before generation.

    Unlike generation, every placeholder is checked and all problems are
    reported together.
    """
    issues: List[ValidationIssue] = []
    for placeholder in template.placeholders:
        key = placeholder.key
        if key not in template_input:
            if placeholder.required:
                issues.append(ValidationIssue(IssueLevel.ERROR, f"Missing required: {key}"))
            continue
        try:
            sanitize_value(placeholder, template_input[key], max_string_length=max_string_length)
        except GenerationError as e:
            issues.append(ValidationIssue(IssueLevel.ERROR, _input_message(placeholder.type, key, e)))
    return issues


def _input_message(placeholder_type: PlaceholderType, key: str, error: GenerationError) -> str:
    template = _INPUT_MESSAGES.get(placeholder_type)
    if template is not None:
        return template.format(key=key)
    if error.message == "String too long":
        return f"{key} is too long"
    if placeholder_type is PlaceholderType.STRING:
        return f"{key} is not a valid string"
    return f"{key}: {error.message}"


def has_errors(issues: Iterable[ValidationIssue]) -> bool:
    """True if any issue is error-level."""
    return any(issue.level is IssueLevel.ERROR for issue in issues)


class ContractValidator:
    """Validator bundling input and source checks with configured limits."""

    def __init__(
        self,
        max_source_length: int = MAX_SOURCE_LENGTH,
        max_string_length: int = MAX_STRING_LENGTH,
    ):
        self.max_source_length = max_source_length
        self.max_string_length = max_string_length

    def validate_source(self, source: str) -> List[ValidationIssue]:
        issues = validate_clarity_source(source, max_length=self.max_source_length)
        if issues:
            logger.debug(f"Source validation reported {len(issues)} issues")
        return issues

    def validate_inputs(
        self,
        template: ContractTemplate,
        template_input: TemplateInput,
    ) -> List[ValidationIssue]:
        return validate_inputs(
            template, template_input, max_string_length=self.max_string_length
        )
