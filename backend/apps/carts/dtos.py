from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from .items import ItemRef


@dataclass
class CartLineDTO:
    id: str
    owner_id: Optional[int]
    item: ItemRef
    quantity: int
    unit_price: Decimal
    created_at: datetime
    updated_at: datetime
    title: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class CartTotalsDTO:
    item_count: int
    subtotal: Decimal
    shipping_fee: Decimal
    grand_total: Decimal
    free_shipping_remaining: Decimal
    currency: str


@dataclass
class CartDTO:
    owner_id: Optional[int]
    lines: List[CartLineDTO]
    totals: CartTotalsDTO
    merge_pending: bool = False


@dataclass
class MergeResultDTO:
    owner_id: int
    merged_lines: int = 0
    created: int = 0
    incremented: int = 0
    # Device lines whose quantity an earlier merge already folded in.
    already_merged: int = 0
    # Device lines dropped because their product or lot no longer exists.
    dropped_items: List[ItemRef] = field(default_factory=list)
"""DTO dataclasses only. Model and session conversion lives in mappers.py and session.py."""
