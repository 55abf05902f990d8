from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set, TYPE_CHECKING

from .items import ItemRef

if TYPE_CHECKING:
    from .dtos import CartLineDTO
    from .models import CartLine, CartMergeReceipt
    from .pricing import ItemSummary


class PriceOracleProtocol(Protocol):
    def lookup_price(self, item: ItemRef) -> Decimal:
        ...

    def describe_many(self, items: Iterable[ItemRef]) -> Dict[ItemRef, "ItemSummary"]:
        ...

    def existing(self, items: Iterable[ItemRef]) -> Set[ItemRef]:
        ...


class EphemeralCartStoreProtocol(Protocol):
    @property
    def token(self) -> str:
        ...

    @property
    def device_key(self) -> str:
        ...

    def load(self) -> List["CartLineDTO"]:
        ...

    def save(self, lines: Iterable["CartLineDTO"]) -> None:
        ...

    def clear(self) -> None:
        ...


class DurableCartStoreProtocol(Protocol):
    def load(self, owner_id: int, for_update: bool = False) -> List["CartLine"]:
        ...

    def insert(
        self, owner_id: int, item: ItemRef, quantity: int, unit_price: Decimal
    ) -> "CartLine":
        ...

    def update_quantity(self, owner_id: int, line_id: Any, quantity: int) -> int:
        ...

    def update_price(self, owner_id: int, line_id: Any, unit_price: Decimal) -> int:
        ...

    def delete(self, owner_id: int, line_id: Any) -> int:
        ...

    def delete_all(self, owner_id: int) -> int:
        ...


class MergeReceiptRepositoryProtocol(Protocol):
    def applied(self, owner_id: int, line_keys: Iterable[str]) -> Dict[str, int]:
        ...

    def record(self, owner_id: int, line_key: str, quantity: int) -> Optional["CartMergeReceipt"]:
        ...


class CartLineMapperProtocol(Protocol):
    def to_dto(self, line: "CartLine") -> "CartLineDTO":
        ...

    def many_to_dto(self, lines: Iterable["CartLine"]) -> List["CartLineDTO"]:
        ...
