"""Device-local cart kept in the visitor's session.

With the default signed-cookie session engine the payload travels in a signed
cookie, so it lives on the visitor's device and nowhere else. Stored shape::

    {"token": "<hex>", "lines": [
        {"key": "<hex>", "item": {"type": "product", "id": 3}, "quantity": 2,
         "unit_price": "100.00", "created_at": "<iso>", "updated_at": "<iso>"}
    ]}

Unknown fields are ignored. Records that cannot be parsed are dropped with a
warning instead of failing the request.
"""
from __future__ import annotations

import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from apps.common import get_logger

from .dtos import CartLineDTO
from .items import item_ref_from_raw, item_ref_to_raw

logger = get_logger(__name__).bind(component="carts", layer="store")


def new_line_key() -> str:
    return uuid.uuid4().hex


class SessionCartStore:
    def __init__(
        self,
        session,
        *,
        key: str = "storefront_cart",
        clock: Callable[[], Any] = timezone.now,
    ):
        self.session = session
        self.key = key
        self.clock = clock

    def _payload(self) -> Dict[str, Any]:
        payload = self.session.get(self.key)
        return payload if isinstance(payload, dict) else {}

    @property
    def token(self) -> str:
        """Identifies this device cart across requests; created on first use."""
        payload = self._payload()
        token = payload.get("token")
        if not isinstance(token, str) or not token:
            token = uuid.uuid4().hex
            self.session[self.key] = {"token": token, "lines": payload.get("lines") or []}
        return token

    @property
    def device_key(self) -> str:
        token = self._payload().get("token")
        if isinstance(token, str) and token:
            return token
        return getattr(self.session, "session_key", None) or f"unsaved-{uuid.uuid4().hex}"

    def load(self) -> List[CartLineDTO]:
        raw_lines = self._payload().get("lines") or []
        if not isinstance(raw_lines, list):
            logger.warning("Discarding malformed session cart", key=self.key)
            return []
        lines: List[CartLineDTO] = []
        for position, raw in enumerate(raw_lines):
            line = self._parse(raw, position)
            if line is not None:
                lines.append(line)
        return lines

    def save(self, lines: Iterable[CartLineDTO]) -> None:
        self.session[self.key] = {
            "token": self.token,
            "lines": [self._serialize(line) for line in lines],
        }

    def clear(self) -> None:
        if self.key in self.session:
            del self.session[self.key]
            logger.debug("Session cart cleared", key=self.key)

    def _parse(self, raw: Any, position: int) -> Optional[CartLineDTO]:
        if not isinstance(raw, Mapping):
            logger.warning("Dropping session cart record", position=position, reason="not an object")
            return None
        try:
            item = item_ref_from_raw(raw.get("item"))
            quantity = raw.get("quantity")
            if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
                raise ValueError(f"invalid quantity {quantity!r}")
            unit_price = Decimal(str(raw.get("unit_price")))
            if not unit_price.is_finite() or unit_price < 0:
                raise ValueError(f"invalid price {raw.get('unit_price')!r}")
        except (ValueError, InvalidOperation) as exc:
            logger.warning("Dropping session cart record", position=position, reason=str(exc))
            return None
        key = raw.get("key")
        created_at = self._parse_time(raw.get("created_at"))
        return CartLineDTO(
            id=key if isinstance(key, str) and key else str(position),
            owner_id=None,
            item=item,
            quantity=quantity,
            unit_price=unit_price,
            created_at=created_at,
            updated_at=self._parse_time(raw.get("updated_at"), created_at),
        )

    def _parse_time(self, value: Any, default=None):
        parsed = parse_datetime(value) if isinstance(value, str) else None
        if parsed is None:
            return default or self.clock()
        if timezone.is_naive(parsed):
            parsed = timezone.make_aware(parsed)
        return parsed

    @staticmethod
    def _serialize(line: CartLineDTO) -> Dict[str, Any]:
        return {
            "key": line.id,
            "item": item_ref_to_raw(line.item),
            "quantity": line.quantity,
            "unit_price": str(line.unit_price),
            "created_at": line.created_at.isoformat(),
            "updated_at": line.updated_at.isoformat(),
        }
