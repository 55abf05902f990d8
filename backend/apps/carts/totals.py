"""Cart totals and the flat shipping rule.

Everything here is pure: the same lines always produce the same totals.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .dtos import CartLineDTO, CartTotalsDTO

ZERO = Decimal("0")


def quantize(amount: Decimal, places: int = 2) -> Decimal:
    return Decimal(amount).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class ShippingRule:
    """Flat fee below ``free_threshold``; free at or above it; nothing for an empty cart."""

    free_threshold: Decimal = Decimal("5000")
    flat_fee: Decimal = Decimal("500")

    def fee_for(self, subtotal: Decimal, item_count: int) -> Decimal:
        if item_count == 0 or subtotal >= self.free_threshold:
            return ZERO
        return self.flat_fee

    def remaining_for_free(self, subtotal: Decimal) -> Decimal:
        return max(self.free_threshold - subtotal, ZERO)


DEFAULT_SHIPPING = ShippingRule()


def compute_totals(
    lines: Iterable[CartLineDTO],
    *,
    shipping: ShippingRule = DEFAULT_SHIPPING,
    currency: str = "KES",
    places: int = 2,
) -> CartTotalsDTO:
    item_count = 0
    subtotal = ZERO
    for line in lines:
        item_count += line.quantity
        subtotal += line.unit_price * line.quantity
    subtotal = quantize(subtotal, places)
    shipping_fee = quantize(shipping.fee_for(subtotal, item_count), places)
    return CartTotalsDTO(
        item_count=item_count,
        subtotal=subtotal,
        shipping_fee=shipping_fee,
        grand_total=subtotal + shipping_fee,
        free_shipping_remaining=quantize(shipping.remaining_for_free(subtotal), places),
        currency=currency,
    )
