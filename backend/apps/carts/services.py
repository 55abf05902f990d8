from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Set

from django.core.exceptions import ImproperlyConfigured
from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.common import get_logger

from .conf import MERGE_PRICE_POLICIES
from .dtos import CartDTO, CartLineDTO, CartTotalsDTO, MergeResultDTO
from .errors import (
    CartError,
    InvalidItemReference,
    InvalidQuantity,
    LineConflict,
    MergeIncomplete,
    PersistenceError,
)
from .identity import Anonymous, Authenticated, IdentityContext
from .items import ItemRef, LotRef, ProductRef
from .locks import KeyedLock
from .mappers import CartLineMapper
from .protocols import (
    CartLineMapperProtocol,
    DurableCartStoreProtocol,
    EphemeralCartStoreProtocol,
    MergeReceiptRepositoryProtocol,
    PriceOracleProtocol,
)
from .session import new_line_key
from .totals import DEFAULT_SHIPPING, ShippingRule, compute_totals

logger = get_logger(__name__).bind(component="carts", layer="service")

MAX_INSERT_ATTEMPTS = 3


@dataclass
class CartContext:
    """
    Everything one caller's cart operations act on: who they are, and the two
    stores that may hold their lines. ``snapshot`` is the last cart the caller
    successfully observed; failed operations leave it as it was.
    """

    identity: IdentityContext
    ephemeral: EphemeralCartStoreProtocol
    durable: DurableCartStoreProtocol
    snapshot: Optional[CartDTO] = None

    @property
    def owner_id(self) -> Optional[int]:
        if isinstance(self.identity, Authenticated):
            return self.identity.owner_id
        return None


def _find_line(lines: Iterable[CartLineDTO], item: ItemRef) -> Optional[CartLineDTO]:
    for line in lines:
        if line.item == item:
            return line
    return None


class CartService:
    def __init__(
        self,
        prices: PriceOracleProtocol,
        merges: MergeReceiptRepositoryProtocol,
        locks: KeyedLock,
        *,
        line_mapper: Optional[CartLineMapperProtocol] = None,
        shipping: ShippingRule = DEFAULT_SHIPPING,
        currency: str = "KES",
        decimal_places: int = 2,
        merge_price_policy: str = "durable",
        clock: Callable[[], Any] = timezone.now,
    ):
        if merge_price_policy not in MERGE_PRICE_POLICIES:
            raise ImproperlyConfigured(
                f"Unknown merge price policy {merge_price_policy!r}; "
                f"expected one of {MERGE_PRICE_POLICIES}"
            )
        self.prices = prices
        self.merges = merges
        self.locks = locks
        self.line_mapper = line_mapper or CartLineMapper()
        self.shipping = shipping
        self.currency = currency
        self.decimal_places = decimal_places
        self.merge_price_policy = merge_price_policy
        self.clock = clock
        self.logger = logger.bind(service="CartService")

    # Reads

    def get_cart(self, ctx: CartContext) -> CartDTO:
        with self._hold(ctx):
            merge_pending = False
            owner_id = ctx.owner_id
            if owner_id is not None:
                try:
                    self._apply_pending(ctx, owner_id)
                except CartError as exc:
                    self.logger.warning(
                        "Serving cart with device lines still pending",
                        owner_id=owner_id,
                        code=exc.code,
                    )
                    merge_pending = True
            return self._refresh(ctx, merge_pending=merge_pending)

    def compute_totals(self, lines: Iterable[CartLineDTO]) -> CartTotalsDTO:
        return compute_totals(
            lines,
            shipping=self.shipping,
            currency=self.currency,
            places=self.decimal_places,
        )

    # Mutations

    def add_item(self, ctx: CartContext, item: ItemRef, quantity: Any = 1) -> CartDTO:
        if not isinstance(item, (ProductRef, LotRef)):
            raise InvalidItemReference()
        quantity = self._require_quantity(quantity)
        with self._hold(ctx):
            owner_id = ctx.owner_id
            if owner_id is None:
                self._add_ephemeral(ctx, item, quantity)
            else:
                self._apply_pending(ctx, owner_id)
                self._add_durable(ctx, owner_id, item, quantity)
            return self._refresh(ctx)

    def remove_item(self, ctx: CartContext, line_id: Any) -> CartDTO:
        line_id = str(line_id)
        with self._hold(ctx):
            owner_id = ctx.owner_id
            if owner_id is None:
                lines = ctx.ephemeral.load()
                remaining = [line for line in lines if line.id != line_id]
                if len(remaining) != len(lines):
                    ctx.ephemeral.save(remaining)
                    self.logger.info("Removed device cart line", line_id=line_id)
                else:
                    self.logger.debug("Device cart line already absent", line_id=line_id)
            else:
                self._apply_pending(ctx, owner_id)
                with self._store_errors("remove_item", owner_id=owner_id):
                    rows = ctx.durable.delete(owner_id, line_id)
                self.logger.info(
                    "Removed cart line", owner_id=owner_id, line_id=line_id, rows=rows
                )
            return self._refresh(ctx)

    def update_quantity(self, ctx: CartContext, line_id: Any, quantity: Any) -> CartDTO:
        quantity = self._parse_quantity(quantity)
        if quantity <= 0:
            return self.remove_item(ctx, line_id)
        line_id = str(line_id)
        with self._hold(ctx):
            owner_id = ctx.owner_id
            if owner_id is None:
                lines = ctx.ephemeral.load()
                existing = next((line for line in lines if line.id == line_id), None)
                if existing is None:
                    self.logger.debug("Quantity update for absent device line", line_id=line_id)
                else:
                    updated = replace(existing, quantity=quantity, updated_at=self.clock())
                    ctx.ephemeral.save(
                        [updated if line is existing else line for line in lines]
                    )
            else:
                self._apply_pending(ctx, owner_id)
                with self._store_errors("update_quantity", owner_id=owner_id):
                    rows = ctx.durable.update_quantity(owner_id, line_id, quantity)
                if rows:
                    self.logger.info(
                        "Updated cart line quantity",
                        owner_id=owner_id,
                        line_id=line_id,
                        quantity=quantity,
                    )
                else:
                    self.logger.debug(
                        "Quantity update for absent cart line",
                        owner_id=owner_id,
                        line_id=line_id,
                    )
            return self._refresh(ctx)

    def clear_cart(self, ctx: CartContext) -> CartDTO:
        with self._hold(ctx):
            owner_id = ctx.owner_id
            if owner_id is None:
                ctx.ephemeral.clear()
            else:
                self._apply_pending(ctx, owner_id)
                with self._store_errors("clear_cart", owner_id=owner_id):
                    rows = ctx.durable.delete_all(owner_id)
                self.logger.info("Cleared cart", owner_id=owner_id, rows=rows)
            return self._refresh(ctx)

    # Identity transitions

    def merge_on_authentication(self, ctx: CartContext, owner_id: int) -> MergeResultDTO:
        """
        Fold the device cart into ``owner_id``'s durable cart.

        Matching items have their quantities added; other lines are copied
        with their price snapshot. Which snapshot survives a match follows
        the configured merge price policy. Lines whose product or lot has
        been deleted are dropped and reported in ``dropped_items``.

        Every folded line gets a receipt holding the quantity merged so far.
        The durable writes and the receipts commit together, and the device
        cart is cleared only after that commit. A device cart that survives
        its merge (a lost cookie update) is therefore folded in again only
        for lines or quantity added since.
        """
        with self.locks.hold(Authenticated(owner_id).lock_key):
            return self._merge(ctx, owner_id)

    def on_authenticated(self, ctx: CartContext, owner_id: int) -> MergeResultDTO:
        ctx.identity = Authenticated(owner_id)
        ctx.snapshot = None
        self.logger.info("Cart owner authenticated", owner_id=owner_id)
        return self.merge_on_authentication(ctx, owner_id)

    def on_signed_out(self, ctx: CartContext) -> None:
        owner_id = ctx.owner_id
        ctx.identity = Anonymous(ctx.ephemeral.device_key)
        ctx.snapshot = None
        self.logger.info("Cart owner signed out", owner_id=owner_id)

    # Internals

    @contextmanager
    def _hold(self, ctx: CartContext) -> Iterator[None]:
        # Each request works on its own copy of the device cart; only account
        # carts are shared between requests.
        if isinstance(ctx.identity, Authenticated):
            with self.locks.hold(ctx.identity.lock_key):
                yield
        else:
            yield

    @contextmanager
    def _store_errors(self, operation: str, **context: Any) -> Iterator[None]:
        try:
            yield
        except DatabaseError as exc:
            self.logger.error(
                "Cart store failure", operation=operation, error=str(exc), **context
            )
            raise PersistenceError() from exc

    @staticmethod
    def _parse_quantity(quantity: Any) -> int:
        if isinstance(quantity, bool):
            raise InvalidQuantity()
        if isinstance(quantity, int):
            return quantity
        if isinstance(quantity, str):
            try:
                return int(quantity.strip())
            except ValueError:
                raise InvalidQuantity() from None
        raise InvalidQuantity()

    def _require_quantity(self, quantity: Any) -> int:
        parsed = self._parse_quantity(quantity)
        if parsed < 1:
            raise InvalidQuantity()
        return parsed

    def _read_lines(self, ctx: CartContext) -> List[CartLineDTO]:
        owner_id = ctx.owner_id
        if owner_id is None:
            return ctx.ephemeral.load()
        with self._store_errors("load", owner_id=owner_id):
            return self.line_mapper.many_to_dto(ctx.durable.load(owner_id))

    def _refresh(self, ctx: CartContext, merge_pending: bool = False) -> CartDTO:
        lines = self._read_lines(ctx)
        with self._store_errors("describe", owner_id=ctx.owner_id):
            summaries = self.prices.describe_many(line.item for line in lines)
        described = []
        for line in lines:
            summary = summaries.get(line.item)
            described.append(replace(line, title=summary.title if summary else None))
        cart = CartDTO(
            owner_id=ctx.owner_id,
            lines=described,
            totals=self.compute_totals(described),
            merge_pending=merge_pending,
        )
        ctx.snapshot = cart
        return cart

    def _add_ephemeral(self, ctx: CartContext, item: ItemRef, quantity: int) -> None:
        lines = ctx.ephemeral.load()
        existing = _find_line(lines, item)
        now = self.clock()
        if existing is not None:
            updated = replace(
                existing, quantity=existing.quantity + quantity, updated_at=now
            )
            lines = [updated if line is existing else line for line in lines]
            self.logger.info(
                "Incremented device cart line", item=item, quantity=updated.quantity
            )
        else:
            with self._store_errors("lookup_price"):
                price = self.prices.lookup_price(item)
            line = CartLineDTO(
                id=new_line_key(),
                owner_id=None,
                item=item,
                quantity=quantity,
                unit_price=price,
                created_at=now,
                updated_at=now,
            )
            lines = [line] + lines
            self.logger.info("Added device cart line", item=item, quantity=quantity, price=price)
        ctx.ephemeral.save(lines)

    def _add_durable(
        self, ctx: CartContext, owner_id: int, item: ItemRef, quantity: int
    ) -> None:
        for attempt in range(1, MAX_INSERT_ATTEMPTS + 1):
            with self._store_errors("add_item", owner_id=owner_id):
                with transaction.atomic():
                    lines = self.line_mapper.many_to_dto(
                        ctx.durable.load(owner_id, for_update=True)
                    )
                    existing = _find_line(lines, item)
                    if existing is not None:
                        total = existing.quantity + quantity
                        ctx.durable.update_quantity(owner_id, existing.id, total)
                        self.logger.info(
                            "Incremented cart line",
                            owner_id=owner_id,
                            item=item,
                            quantity=total,
                        )
                        return
                    price = self.prices.lookup_price(item)
                    try:
                        ctx.durable.insert(owner_id, item, quantity, price)
                    except LineConflict:
                        self.logger.warning(
                            "Concurrent add detected, re-reading cart",
                            owner_id=owner_id,
                            item=item,
                            attempt=attempt,
                        )
                        continue
                    self.logger.info(
                        "Added cart line",
                        owner_id=owner_id,
                        item=item,
                        quantity=quantity,
                        price=price,
                    )
                    return
        self.logger.error(
            "Giving up on add after repeated conflicts", owner_id=owner_id, item=item
        )
        raise PersistenceError("Cart changed concurrently; please retry")

    def _apply_pending(self, ctx: CartContext, owner_id: int) -> None:
        if ctx.ephemeral.load():
            self._merge(ctx, owner_id)

    def _merge(self, ctx: CartContext, owner_id: int) -> MergeResultDTO:
        pending = ctx.ephemeral.load()
        result = MergeResultDTO(owner_id=owner_id)
        if not pending:
            self.logger.debug("Nothing to merge", owner_id=owner_id)
            return result
        token = ctx.ephemeral.token
        keys = {line.id: f"{token}:{line.id}" for line in pending}
        try:
            with self._store_errors("merge", owner_id=owner_id):
                with transaction.atomic():
                    live = self.prices.existing(line.item for line in pending)
                    applied = self.merges.applied(owner_id, keys.values())
                    self._fold_lines(ctx, owner_id, pending, keys, applied, live, result)
        except (PersistenceError, LineConflict) as exc:
            self.logger.warning(
                "Cart merge incomplete",
                owner_id=owner_id,
                pending=len(pending),
                error=str(exc),
            )
            raise MergeIncomplete(pending_lines=len(pending)) from exc
        ctx.ephemeral.clear()
        result.merged_lines = result.created + result.incremented
        self.logger.info(
            "Merged device cart",
            owner_id=owner_id,
            lines=len(pending),
            created=result.created,
            incremented=result.incremented,
            already_merged=result.already_merged,
            dropped=len(result.dropped_items),
        )
        return result

    def _fold_lines(
        self,
        ctx: CartContext,
        owner_id: int,
        pending: List[CartLineDTO],
        keys: Dict[str, str],
        applied: Dict[str, int],
        live: Set[ItemRef],
        result: MergeResultDTO,
    ) -> None:
        durable = {
            line.item: line
            for line in self.line_mapper.many_to_dto(
                ctx.durable.load(owner_id, for_update=True)
            )
        }
        for line in pending:
            if line.item not in live:
                self.logger.warning(
                    "Dropping device cart line for missing item",
                    owner_id=owner_id,
                    item=line.item,
                    quantity=line.quantity,
                )
                result.dropped_items.append(line.item)
                continue
            key = keys[line.id]
            # Only the quantity added since the last receipt for this line.
            delta = line.quantity - applied.get(key, 0)
            if delta <= 0:
                result.already_merged += 1
                continue
            existing = durable.get(line.item)
            if existing is None:
                created = ctx.durable.insert(owner_id, line.item, delta, line.unit_price)
                durable[line.item] = self.line_mapper.to_dto(created)
                result.created += 1
            else:
                total = existing.quantity + delta
                ctx.durable.update_quantity(owner_id, existing.id, total)
                price = existing.unit_price
                if self._device_price_wins(line, existing):
                    ctx.durable.update_price(owner_id, existing.id, line.unit_price)
                    price = line.unit_price
                durable[line.item] = replace(existing, quantity=total, unit_price=price)
                result.incremented += 1
            self.merges.record(owner_id, key, line.quantity)

    def _device_price_wins(self, device: CartLineDTO, account: CartLineDTO) -> bool:
        if self.merge_price_policy != "earliest":
            return False
        return device.created_at < account.created_at and device.unit_price != account.unit_price
