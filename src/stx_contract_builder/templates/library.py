"""Canonical Clarity contract templates.

Any edit to a template source must be matched by an update of the
expected fingerprints in ``registry.py``.
"""

from types import MappingProxyType
from typing import Mapping, Union

from ..models.enums import PlaceholderType, TemplateId
from ..models.template import ContractTemplate, TemplatePlaceholder


ESCROW_TEMPLATE = ContractTemplate(
    id=TemplateId.ESCROW,
    name="Simple Escrow",
    version="1.0.0",
    description="Funds locked until a condition or arbiter approval.",
    placeholders=(
        TemplatePlaceholder("buyer", PlaceholderType.PRINCIPAL, True, "Address that funds the escrow"),
        TemplatePlaceholder("seller", PlaceholderType.PRINCIPAL, True, "Address paid on release"),
        TemplatePlaceholder("arbiter", PlaceholderType.PRINCIPAL, True, "Address allowed to release early"),
        TemplatePlaceholder("deadline-height", PlaceholderType.UINT, True, "Block height after which anyone may release"),
        TemplatePlaceholder("amount-ustx", PlaceholderType.UINT, True, "Escrowed amount in micro-STX"),
    ),
    source="""
;; ESCROW TEMPLATE
(define-constant buyer {{buyer}})
(define-constant seller {{seller}})
(define-constant arbiter {{arbiter}})
(define-constant deadline {{deadline-height}})
(define-constant amount {{amount-ustx}})

(define-data-var funded bool false)
(define-data-var released bool false)

(define-public (fund)
  (begin
    (asserts! (is-eq tx-sender buyer) (err u100))
    (asserts! (is-eq (var-get funded) false) (err u101))
    (stx-transfer? amount tx-sender (as-contract tx-sender))
  ))

(define-public (release)
  (begin
    (asserts! (or (is-eq tx-sender arbiter) (>= block-height deadline)) (err u102))
    (asserts! (is-eq (var-get released) false) (err u103))
    (var-set released true)
    (stx-transfer? amount (as-contract tx-sender) seller)
  ))
""",
)

SPLIT_TEMPLATE = ContractTemplate(
    id=TemplateId.SPLIT,
    name="Split Payment",
    version="1.0.0",
    description="Split incoming funds between multiple recipients by percentages.",
    placeholders=(
        TemplatePlaceholder("recipient-a", PlaceholderType.PRINCIPAL, True),
        TemplatePlaceholder("recipient-b", PlaceholderType.PRINCIPAL, True),
        TemplatePlaceholder("pct-a", PlaceholderType.UINT, True, "Share of recipient A in percent"),
        TemplatePlaceholder("pct-b", PlaceholderType.UINT, True, "Share of recipient B in percent"),
    ),
    source="""
;; SPLIT TEMPLATE
(define-constant a {{recipient-a}})
(define-constant b {{recipient-b}})
(define-constant pct-a {{pct-a}})
(define-constant pct-b {{pct-b}})

(define-public (split (amount uint))
  (begin
    (asserts! (is-eq (+ pct-a pct-b) u100) (err u100))
    (let ((a-amt (/ (* amount pct-a) u100))
          (b-amt (/ (* amount pct-b) u100)))
      (begin
        (try! (stx-transfer? a-amt tx-sender a))
        (try! (stx-transfer? b-amt tx-sender b))
        (ok true)
      )
    )
  ))
""",
)

SUBSCRIPTION_TEMPLATE = ContractTemplate(
    id=TemplateId.SUBSCRIPTION,
    name="Simple Subscription",
    version="1.0.0",
    description="Pay-per-period subscription with cancel option.",
    placeholders=(
        TemplatePlaceholder("provider", PlaceholderType.PRINCIPAL, True, "Address receiving payments"),
        TemplatePlaceholder("subscriber", PlaceholderType.PRINCIPAL, True, "Address making payments"),
        TemplatePlaceholder("period", PlaceholderType.UINT, True, "Blocks between payments"),
        TemplatePlaceholder("price-ustx", PlaceholderType.UINT, True, "Price per period in micro-STX"),
    ),
    source="""
;; SUBSCRIPTION TEMPLATE
(define-constant provider {{provider}})
(define-constant subscriber {{subscriber}})
(define-constant period {{period}})
(define-constant price {{price-ustx}})
(define-data-var last-paid uint u0)

(define-public (pay)
  (begin
    (asserts! (is-eq tx-sender subscriber) (err u100))
    (asserts! (>= block-height (+ (var-get last-paid) period)) (err u101))
    (var-set last-paid block-height)
    (stx-transfer? price tx-sender provider)
  ))

(define-public (cancel)
  (ok true)
)
""",
)

TEMPLATES: Mapping[TemplateId, ContractTemplate] = MappingProxyType({
    TemplateId.ESCROW: ESCROW_TEMPLATE,
    TemplateId.SPLIT: SPLIT_TEMPLATE,
    TemplateId.SUBSCRIPTION: SUBSCRIPTION_TEMPLATE,
})

# Example requests shown to users and used when a request is left blank.
DEFAULT_PROMPTS: Mapping[TemplateId, str] = MappingProxyType({
    TemplateId.ESCROW: (
        "Create an escrow where buyer ST... pays seller ST...; "
        "arbiter ST... can release after height 120000 if dispute."
    ),
    TemplateId.SPLIT: "Split incoming payment 60% to ST... and 40% to ST....",
    TemplateId.SUBSCRIPTION: (
        "Monthly subscription: subscriber ST... pays provider ST... "
        "every 4320 blocks at price 1000000 uSTX."
    ),
})


def coerce_template_id(template_id: Union[TemplateId, str]) -> TemplateId:
    """Accept an enum member or its case-insensitive string value."""
    if isinstance(template_id, TemplateId):
        return template_id
    try:
        return TemplateId(str(template_id).strip().upper())
    except ValueError:
        raise KeyError(f"Unknown template id: {template_id}") from None


def get_template(template_id: Union[TemplateId, str]) -> ContractTemplate:
    """
    Look up a canonical template.

    Raises:
        KeyError: If the id does not name a template.
    """
    return TEMPLATES[coerce_template_id(template_id)]
