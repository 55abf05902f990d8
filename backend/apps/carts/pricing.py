from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Optional, Set

from apps.auctions.repositories import LotRepository
from apps.catalog.repositories import ProductRepository
from apps.common import get_logger

from .errors import ItemNotFound
from .items import ItemRef, LotRef, ProductRef

logger = get_logger(__name__).bind(component="carts", layer="pricing")


@dataclass(frozen=True)
class ItemSummary:
    title: Optional[str]
    unit: Optional[str] = None
    image: Optional[str] = None


class CatalogPriceOracle:
    """
    Current prices from the catalog and the live auction board.

    A product costs its list price; a lot costs its current bid price. Items
    that are gone or deactivated cannot be priced and raise ``ItemNotFound``.
    """

    def __init__(
        self,
        products: Optional[ProductRepository] = None,
        lots: Optional[LotRepository] = None,
    ) -> None:
        self.products = products or ProductRepository()
        self.lots = lots or LotRepository()

    def lookup_price(self, item: ItemRef) -> Decimal:
        if isinstance(item, ProductRef):
            product = self.products.get_active(item.id)
            price = product.price if product is not None else None
        elif isinstance(item, LotRef):
            lot = self.lots.get_active(item.id)
            price = lot.current_price if lot is not None else None
        else:
            raise TypeError(f"Unsupported item reference {item!r}")
        if price is None:
            logger.info("Price lookup failed", item=item)
            raise ItemNotFound(item)
        logger.debug("Price looked up", item=item, price=price)
        return Decimal(price)

    def describe_many(self, items: Iterable[ItemRef]) -> Dict[ItemRef, ItemSummary]:
        items = list(items)
        product_ids = {i.id for i in items if isinstance(i, ProductRef)}
        lot_ids = {i.id for i in items if isinstance(i, LotRef)}
        summaries: Dict[ItemRef, ItemSummary] = {}
        if product_ids:
            for product in self.products.get_many(product_ids):
                summaries[ProductRef(product.id)] = ItemSummary(
                    product.title, product.unit, product.image
                )
        if lot_ids:
            for lot in self.lots.get_many(lot_ids):
                summaries[LotRef(lot.id)] = ItemSummary(lot.name, lot.unit, lot.image)
        return summaries

    def existing(self, items: Iterable[ItemRef]) -> Set[ItemRef]:
        """The subset of ``items`` that still has a catalog row, active or not."""
        items = list(items)
        product_ids = {i.id for i in items if isinstance(i, ProductRef)}
        lot_ids = {i.id for i in items if isinstance(i, LotRef)}
        found: Set[ItemRef] = set()
        if product_ids:
            found.update(ProductRef(pk) for pk in self.products.existing_ids(product_ids))
        if lot_ids:
            found.update(LotRef(pk) for pk in self.lots.existing_ids(lot_ids))
        return found
