"""Template registry and integrity checking.

The registry is an immutable, process-wide mapping from template id to
template. Before a template is used its trimmed source is fingerprinted
and compared against a precomputed table, which detects accidental drift
between the sources and the table.

Two fingerprint algorithms are available. ``sha256`` is the default.
``rolling`` is the legacy 32-bit multiply-by-31 hash; it is not
collision resistant and only guards against accidental edits.
"""

import hashlib
import logging
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional, Tuple, Union

from ..models.enums import IntegrityStatus, TemplateId
from ..models.template import ContractTemplate, IntegrityResult
from .library import TEMPLATES, coerce_template_id


logger = logging.getLogger(__name__)

SHA256 = "sha256"
ROLLING = "rolling"

# Update these whenever a template source in library.py changes.
TEMPLATE_HASHES: Mapping[TemplateId, str] = MappingProxyType({
    TemplateId.ESCROW: "dcc61337de1c18eac24237aead1455f5a9a3bbde075052fb5c96ffa2c68cf1f3",
    TemplateId.SPLIT: "9931b6c4ba94f799e30029857ceba202c69c7bdb9046202072d2d7f5a4602d42",
    TemplateId.SUBSCRIPTION: "46dbf6a4b389ededf2fc579b5260cc978fb20e8db2f2cbd8755e26c06c855d60",
})

LEGACY_TEMPLATE_HASHES: Mapping[TemplateId, str] = MappingProxyType({
    TemplateId.ESCROW: "19378b2b",
    TemplateId.SPLIT: "7b33901c",
    TemplateId.SUBSCRIPTION: "21bec69d",
})


def sha256_fingerprint(text: str) -> str:
    """Hex SHA-256 digest of the UTF-8 encoded text."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def rolling_fingerprint(text: str) -> str:
    """
    Legacy rolling hash: ``h = h * 31 + unit`` over UTF-16 code units in a
    signed 32-bit accumulator, folded to its absolute value in hex.
    """
    data = text.encode("utf-16-le")
    acc = 0
    for i in range(0, len(data), 2):
        unit = int.from_bytes(data[i:i + 2], "little")
        acc = ((acc << 5) - acc + unit) & 0xFFFFFFFF
    if acc >= 0x80000000:
        acc -= 0x100000000
    return format(abs(acc), "x").zfill(8)


FINGERPRINT_FUNCTIONS: Mapping[str, Callable[[str], str]] = MappingProxyType({
    SHA256: sha256_fingerprint,
    ROLLING: rolling_fingerprint,
})

DEFAULT_HASH_TABLES: Mapping[str, Mapping[TemplateId, str]] = MappingProxyType({
    SHA256: TEMPLATE_HASHES,
    ROLLING: LEGACY_TEMPLATE_HASHES,
})


def fingerprint(source: str, algorithm: str = SHA256) -> str:
    """
    Fingerprint a template source.

    Raises:
        ValueError: If the algorithm is unknown.
    """
    try:
        func = FINGERPRINT_FUNCTIONS[algorithm]
    except KeyError:
        raise ValueError(f"Unknown fingerprint algorithm: {algorithm}") from None
    return func(source)


def _lookup_expected(table: Mapping[Any, str], template_id: Any) -> Optional[str]:
    """Expected fingerprint keyed by enum member or by its string value."""
    if template_id in table:
        return table[template_id]
    value = getattr(template_id, "value", template_id)
    return table.get(value)


def verify_template_integrity(
    template: ContractTemplate,
    expected_hashes: Optional[Mapping[Any, str]] = None,
    algorithm: str = SHA256,
) -> IntegrityResult:
    """
    Check a template's source against its expected fingerprint.

    Args:
        template: Template to check.
        expected_hashes: Expected fingerprints keyed by template id. The
            built-in table for ``algorithm`` is used when omitted.
        algorithm: Fingerprint algorithm name.

    Returns:
        IntegrityResult. A template without an expected fingerprint is a
        MISMATCH. An exception raised while fingerprinting gives an
        UNVERIFIABLE result instead of an implicit pass.

    Raises:
        ValueError: If the algorithm is unknown.
    """
    if algorithm not in FINGERPRINT_FUNCTIONS:
        raise ValueError(f"Unknown fingerprint algorithm: {algorithm}")
    table = expected_hashes if expected_hashes is not None else DEFAULT_HASH_TABLES[algorithm]
    template_id = getattr(template, "id", None)

    try:
        expected = _lookup_expected(table, template_id)
        if not expected:
            logger.warning(f"No expected fingerprint for template {template_id}")
            return IntegrityResult(
                template_id=template_id,
                status=IntegrityStatus.MISMATCH,
                algorithm=algorithm,
                error="No expected fingerprint",
            )
        actual = fingerprint(template.source.strip(), algorithm)
    except Exception as e:
        logger.warning(f"Template integrity check could not run for {template_id}: {e}")
        return IntegrityResult(
            template_id=template_id,
            status=IntegrityStatus.UNVERIFIABLE,
            algorithm=algorithm,
            error=str(e),
        )

    match = actual == expected
    logger.info(
        f"Template integrity check: template_id={getattr(template_id, 'value', template_id)} "
        f"expected={expected} actual={actual} match={match}"
    )
    return IntegrityResult(
        template_id=template_id,
        status=IntegrityStatus.VERIFIED if match else IntegrityStatus.MISMATCH,
        algorithm=algorithm,
        expected=expected,
        actual=actual,
    )


class TemplateRegistry:
    """
    Read-only registry of contract templates.

    Holds the templates together with the expected fingerprint table used
    to verify them. Neither mapping can be modified after construction.
    """

    def __init__(
        self,
        templates: Optional[Mapping[TemplateId, ContractTemplate]] = None,
        expected_hashes: Optional[Mapping[Any, str]] = None,
        algorithm: str = SHA256,
    ):
        if algorithm not in FINGERPRINT_FUNCTIONS:
            raise ValueError(f"Unknown fingerprint algorithm: {algorithm}")
        self._algorithm = algorithm
        self._templates: Mapping[TemplateId, ContractTemplate] = MappingProxyType(
            dict(templates if templates is not None else TEMPLATES)
        )
        self._expected: Mapping[Any, str] = MappingProxyType(
            dict(expected_hashes if expected_hashes is not None else DEFAULT_HASH_TABLES[algorithm])
        )

    @property
    def algorithm(self) -> str:
        return self._algorithm

    @property
    def templates(self) -> Mapping[TemplateId, ContractTemplate]:
        return self._templates

    def get(self, template_id: Union[TemplateId, str]) -> ContractTemplate:
        """
        Get a template by id.

        Raises:
            KeyError: If no template is registered under the id.
        """
        key = coerce_template_id(template_id)
        if key not in self._templates:
            raise KeyError(f"Template not registered: {key.value}")
        return self._templates[key]

    def ids(self) -> Tuple[TemplateId, ...]:
        return tuple(self._templates.keys())

    def expected_fingerprint(self, template_id: Union[TemplateId, str]) -> Optional[str]:
        return _lookup_expected(self._expected, coerce_template_id(template_id))

    def verify(self, template: ContractTemplate) -> IntegrityResult:
        """Verify a template against this registry's fingerprint table."""
        return verify_template_integrity(
            template, expected_hashes=self._expected, algorithm=self._algorithm
        )

    def verify_all(self) -> Dict[TemplateId, IntegrityResult]:
        return {tid: self.verify(t) for tid, t in self._templates.items()}

    def __contains__(self, template_id: object) -> bool:
        try:
            return coerce_template_id(template_id) in self._templates  # type: ignore[arg-type]
        except KeyError:
            return False

    def __iter__(self) -> Iterator[ContractTemplate]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)


REGISTRY = TemplateRegistry()
