"""Pricing calculator: derives order financials from line items.

Runs exactly once, at order creation. Later content edits never recompute
these figures.

    subtotal = Σ quantity × unit_price
    tax      = subtotal × tax_rate
    shipping = flat fee
    total    = subtotal + tax + shipping − discount   (discount is always 0)

Every figure is rounded half-up to four places, the scale of the NUMERIC(14,4)
money columns, so stored values equal the ones returned at creation.
"""
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Protocol

_ZERO = Decimal("0")
MONEY_QUANTUM = Decimal("0.0001")


class PricedLine(Protocol):
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class PricingConfig:
    tax_rate: Decimal = Decimal("0.09")
    shipping_fee: Decimal = Decimal("5.00")


@dataclass(frozen=True)
class PricingBreakdown:
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    shipping: Decimal
    total: Decimal


def _money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def calculate_pricing(
    items: Iterable[PricedLine], config: PricingConfig | None = None
) -> PricingBreakdown:
    """Compute the order financials for ``items``.

    Callers validate items beforehand; an empty list or an item with
    quantity < 1 or unit_price < 0 is a programmer error.
    """
    config = config or PricingConfig()
    lines = list(items)
    if not lines:
        raise ValueError("An order needs at least one line item")

    subtotal = _ZERO
    for line in lines:
        if line.quantity < 1:
            raise ValueError(f"quantity must be >= 1, got {line.quantity}")
        if line.unit_price < _ZERO:
            raise ValueError(f"unit_price must be >= 0, got {line.unit_price}")
        subtotal += line.unit_price * line.quantity

    subtotal = _money(subtotal)
    tax = _money(subtotal * config.tax_rate)
    shipping = _money(config.shipping_fee)
    discount = _ZERO
    return PricingBreakdown(
        subtotal=subtotal,
        discount=discount,
        tax=tax,
        shipping=shipping,
        total=subtotal + tax + shipping - discount,
    )
