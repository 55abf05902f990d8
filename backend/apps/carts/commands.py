from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import InvalidItemReference, InvalidQuantity
from .items import ItemRef, LotRef, ProductRef


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


@dataclass
class AddItemCommand:
    item: ItemRef
    quantity: int = 1

    @staticmethod
    def from_raw(payload: Dict[str, Any]) -> "AddItemCommand":
        if not isinstance(payload, dict):
            raise InvalidItemReference("Payload must be an object")
        product_id = payload.get("productId", payload.get("product_id"))
        lot_id = payload.get("lotId", payload.get("lot_id"))
        if (product_id is None) == (lot_id is None):
            raise InvalidItemReference()
        raw_id = product_id if product_id is not None else lot_id
        item_id = _coerce_int(raw_id)
        if item_id is None or item_id <= 0:
            raise InvalidItemReference(
                "Item id must be a positive integer", details={"id": raw_id}
            )
        item = ProductRef(item_id) if product_id is not None else LotRef(item_id)
        raw_quantity = payload.get("quantity", 1)
        quantity = _coerce_int(raw_quantity)
        if quantity is None or quantity < 1:
            raise InvalidQuantity(details={"quantity": raw_quantity})
        return AddItemCommand(item=item, quantity=quantity)


@dataclass
class QuantityUpdateCommand:
    line_id: str
    quantity: int

    @staticmethod
    def from_raw(line_id: Any, payload: Dict[str, Any]) -> "QuantityUpdateCommand":
        # Zero and negatives are valid here; the service turns them into removals.
        if not isinstance(payload, dict) or "quantity" not in payload:
            raise InvalidQuantity("Quantity is required")
        quantity = _coerce_int(payload.get("quantity"))
        if quantity is None:
            raise InvalidQuantity(details={"quantity": payload.get("quantity")})
        return QuantityUpdateCommand(line_id=str(line_id), quantity=quantity)
