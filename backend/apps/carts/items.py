"""Item references: a cart line points at exactly one catalog product or auction lot."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Union


@dataclass(frozen=True)
class ProductRef:
    id: int
    kind: ClassVar[str] = "product"


@dataclass(frozen=True)
class LotRef:
    id: int
    kind: ClassVar[str] = "lot"


ItemRef = Union[ProductRef, LotRef]

ITEM_KINDS = {ProductRef.kind: ProductRef, LotRef.kind: LotRef}


def make_item_ref(kind: str, item_id: Any) -> ItemRef:
    """Build an ItemRef from a kind string and an id, raising ``ValueError`` on bad input."""
    ref_cls = ITEM_KINDS.get(kind)
    if ref_cls is None:
        raise ValueError(f"Unknown item type {kind!r}")
    if isinstance(item_id, bool):
        raise ValueError("Item id must be an integer")
    try:
        parsed = int(item_id)
    except (TypeError, ValueError):
        raise ValueError(f"Item id must be an integer, got {item_id!r}") from None
    if parsed <= 0:
        raise ValueError("Item id must be positive")
    return ref_cls(parsed)


def item_ref_to_raw(item: ItemRef) -> Dict[str, Any]:
    if isinstance(item, (ProductRef, LotRef)):
        return {"type": item.kind, "id": item.id}
    raise TypeError(f"Unsupported item reference {item!r}")


def item_ref_from_raw(raw: Mapping[str, Any]) -> ItemRef:
    if not isinstance(raw, Mapping):
        raise ValueError("Item reference must be an object")
    return make_item_ref(raw.get("type"), raw.get("id"))
