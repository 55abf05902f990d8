from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.common import get_logger
from apps.common.repository import GenericRepository

from .errors import LineConflict
from .items import ItemRef, LotRef, ProductRef
from .models import CartLine, CartMergeReceipt

logger = get_logger(__name__).bind(component="carts", layer="repository")


def item_fields(item: ItemRef) -> Dict[str, Any]:
    if isinstance(item, ProductRef):
        return {"product_id": item.id, "lot_id": None}
    if isinstance(item, LotRef):
        return {"product_id": None, "lot_id": item.id}
    raise TypeError(f"Unsupported item reference {item!r}")


def _line_pk(line_id: Any) -> Optional[int]:
    try:
        return int(line_id)
    except (TypeError, ValueError):
        return None


class CartLineRepository(GenericRepository[CartLine]):
    """Durable cart lines. Every query is scoped to the owner so one account can never touch another's lines."""

    def __init__(self):
        super().__init__(CartLine)

    def _owned(self, owner_id: int, line_id: Any = None):
        qs = self.model.objects.filter(owner_id=owner_id)
        if line_id is not None:
            qs = qs.filter(pk=_line_pk(line_id))
        return qs

    def load(self, owner_id: int, for_update: bool = False) -> List[CartLine]:
        qs = self._owned(owner_id).order_by("-created_at", "-id")
        if for_update:
            qs = qs.select_for_update()
        return list(qs)

    def insert(
        self, owner_id: int, item: ItemRef, quantity: int, unit_price: Decimal
    ) -> CartLine:
        now = timezone.now()
        try:
            # Savepoint so a lost race does not poison the caller's transaction.
            with transaction.atomic():
                return self.model.objects.create(
                    owner_id=owner_id,
                    quantity=quantity,
                    unit_price=unit_price,
                    created_at=now,
                    updated_at=now,
                    **item_fields(item),
                )
        except IntegrityError as exc:
            logger.warning(
                "Cart line insert conflicted", owner_id=owner_id, item=item, error=str(exc)
            )
            raise LineConflict(str(exc)) from exc

    def update_quantity(self, owner_id: int, line_id: Any, quantity: int) -> int:
        if _line_pk(line_id) is None:
            return 0
        return self._owned(owner_id, line_id).update(
            quantity=quantity, updated_at=timezone.now()
        )

    def update_price(self, owner_id: int, line_id: Any, unit_price: Decimal) -> int:
        if _line_pk(line_id) is None:
            return 0
        return self._owned(owner_id, line_id).update(
            unit_price=unit_price, updated_at=timezone.now()
        )

    def delete(self, owner_id: int, line_id: Any) -> int:
        if _line_pk(line_id) is None:
            return 0
        deleted, _ = self._owned(owner_id, line_id).delete()
        return deleted

    def delete_all(self, owner_id: int) -> int:
        deleted, _ = self._owned(owner_id).delete()
        return deleted


class MergeReceiptRepository(GenericRepository[CartMergeReceipt]):
    def __init__(self):
        super().__init__(CartMergeReceipt)

    def applied(self, owner_id: int, line_keys: Iterable[str]) -> Dict[str, int]:
        """Quantity already folded in for each of ``line_keys`` that has a receipt."""
        rows = self.list(owner_id=owner_id, line_key__in=list(line_keys))
        return dict(rows.values_list("line_key", "quantity"))

    def record(self, owner_id: int, line_key: str, quantity: int) -> CartMergeReceipt:
        receipt, _ = self.model.objects.update_or_create(
            owner_id=owner_id,
            line_key=line_key,
            defaults={"quantity": quantity, "merged_at": timezone.now()},
        )
        return receipt

    def prune(self, before) -> int:
        deleted, _ = self.list(merged_at__lt=before).delete()
        return deleted
