"""Type-specific sanitizers for template placeholder values.

Each sanitizer takes a raw, untyped value and returns its Clarity literal
rendering, or raises InvalidPlaceholderValueError.
"""

import math
import re
from decimal import ROUND_FLOOR, Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional, Union

from ..models.enums import PlaceholderType
from ..models.template import TemplatePlaceholder
from .exceptions import InvalidPlaceholderValueError, UnsupportedPlaceholderTypeError


PRINCIPAL_RE = re.compile(r"S[TP][A-Za-z0-9.\-]+")
HEX_BUFFER_RE = re.compile(r"0x[0-9a-f]*")

MAX_STRING_LENGTH = 256

# Clarity uints are 128-bit.
MAX_UINT = 2 ** 128 - 1


def sanitize_principal(value: Any, key: Optional[str] = None) -> str:
    if not isinstance(value, str) or not PRINCIPAL_RE.fullmatch(value):
        raise InvalidPlaceholderValueError("Invalid principal", key=key)
    return value


def _coerce_number(value: Any) -> Optional[Union[int, float, Decimal]]:
    """Numeric view of a raw value, or None when it is not a finite number."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except InvalidOperation:
            return None
        return number if number.is_finite() else None
    return None


def sanitize_uint(value: Any, key: Optional[str] = None) -> str:
    number = _coerce_number(value)
    # Bounds are checked before flooring so huge exponents never expand.
    if number is None or number < 0 or number >= MAX_UINT + 1:
        raise InvalidPlaceholderValueError("Invalid uint", key=key)
    if isinstance(number, Decimal):
        floored = int(number.to_integral_value(rounding=ROUND_FLOOR))
    else:
        floored = int(math.floor(number))
    return f"u{floored}"


def sanitize_string(
    value: Any,
    key: Optional[str] = None,
    max_length: int = MAX_STRING_LENGTH,
) -> str:
    if not isinstance(value, str):
        raise InvalidPlaceholderValueError("Invalid string", key=key)
    if len(value) > max_length:
        raise InvalidPlaceholderValueError(
            "String too long", key=key, details={"length": len(value), "max_length": max_length}
        )
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def sanitize_buffer(value: Any, key: Optional[str] = None) -> str:
    if not isinstance(value, str):
        raise InvalidPlaceholderValueError("Invalid buffer", key=key)
    hex_value = value.lower()
    if not HEX_BUFFER_RE.fullmatch(hex_value):
        raise InvalidPlaceholderValueError("Buffer must be hex", key=key)
    return hex_value


SANITIZERS: Mapping[PlaceholderType, Callable[..., str]] = {
    PlaceholderType.PRINCIPAL: sanitize_principal,
    PlaceholderType.UINT: sanitize_uint,
    PlaceholderType.STRING: sanitize_string,
    PlaceholderType.BUFFER: sanitize_buffer,
}


def sanitize_value(
    placeholder: TemplatePlaceholder,
    raw: Any,
    max_string_length: int = MAX_STRING_LENGTH,
) -> str:
    """
    Render a raw value for a placeholder according to its declared type.

    Raises:
        InvalidPlaceholderValueError: If the value is not valid for the type.
        UnsupportedPlaceholderTypeError: If no sanitizer handles the type.
    """
    sanitizer = SANITIZERS.get(placeholder.type)
    if sanitizer is None:
        raise UnsupportedPlaceholderTypeError(
            "Unsupported placeholder type",
            key=placeholder.key,
            details={"type": str(getattr(placeholder.type, "value", placeholder.type))},
        )
    if sanitizer is sanitize_string:
        return sanitize_string(raw, key=placeholder.key, max_length=max_string_length)
    return sanitizer(raw, key=placeholder.key)
