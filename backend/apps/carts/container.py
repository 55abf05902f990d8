from __future__ import annotations

from .conf import get_cart_settings
from .identity import identity_for_request
from .locks import cart_locks
from .mappers import CartLineMapper
from .pricing import CatalogPriceOracle
from .repositories import CartLineRepository, MergeReceiptRepository
from .services import CartContext, CartService
from .session import SessionCartStore
from .totals import ShippingRule


def build_cart_service() -> CartService:
    settings = get_cart_settings()
    return CartService(
        prices=CatalogPriceOracle(),
        merges=MergeReceiptRepository(),
        locks=cart_locks,
        line_mapper=CartLineMapper(),
        shipping=ShippingRule(
            free_threshold=settings.free_shipping_threshold,
            flat_fee=settings.flat_shipping_fee,
        ),
        currency=settings.currency,
        decimal_places=settings.decimal_places,
        merge_price_policy=settings.merge_price_policy,
    )


def build_cart_context(request) -> CartContext:
    ephemeral = SessionCartStore(request.session, key=get_cart_settings().session_key)
    return CartContext(
        identity=identity_for_request(request, ephemeral),
        ephemeral=ephemeral,
        durable=CartLineRepository(),
    )
