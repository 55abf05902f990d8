from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

MERGE_PRICE_POLICIES = ("durable", "earliest")


@dataclass(frozen=True)
class CartSettings:
    session_key: str = "storefront_cart"
    currency: str = "KES"
    decimal_places: int = 2
    free_shipping_threshold: Decimal = Decimal("5000")
    flat_shipping_fee: Decimal = Decimal("500")
    merge_price_policy: str = "durable"
    merge_receipt_ttl: timedelta = timedelta(days=30)


def _decimal_setting(name: str, default: str) -> Decimal:
    raw = getattr(settings, name, default)
    try:
        value = Decimal(str(raw))
    except InvalidOperation:
        raise ImproperlyConfigured(f"{name} must be a decimal amount, got {raw!r}") from None
    if value < 0:
        raise ImproperlyConfigured(f"{name} must not be negative")
    return value


def _receipt_ttl() -> timedelta:
    # A device cart can come back until its session cookie expires, so its
    # receipts must outlive the cookie.
    cookie_age = int(settings.SESSION_COOKIE_AGE)
    raw = getattr(settings, "CART_MERGE_RECEIPT_TTL", cookie_age)
    try:
        seconds = int(raw)
    except (TypeError, ValueError):
        raise ImproperlyConfigured(f"CART_MERGE_RECEIPT_TTL must be seconds, got {raw!r}") from None
    if seconds < cookie_age:
        raise ImproperlyConfigured(
            "CART_MERGE_RECEIPT_TTL must be at least SESSION_COOKIE_AGE "
            f"({cookie_age} seconds)"
        )
    return timedelta(seconds=seconds)


def get_cart_settings() -> CartSettings:
    policy = str(getattr(settings, "CART_MERGE_PRICE_POLICY", "durable")).lower()
    if policy not in MERGE_PRICE_POLICIES:
        raise ImproperlyConfigured(
            f"CART_MERGE_PRICE_POLICY must be one of {MERGE_PRICE_POLICIES}, got {policy!r}"
        )
    return CartSettings(
        session_key=getattr(settings, "CART_SESSION_KEY", "storefront_cart"),
        currency=getattr(settings, "CART_CURRENCY", "KES"),
        decimal_places=int(getattr(settings, "CART_CURRENCY_DECIMAL_PLACES", 2)),
        free_shipping_threshold=_decimal_setting("CART_FREE_SHIPPING_THRESHOLD", "5000"),
        flat_shipping_fee=_decimal_setting("CART_FLAT_SHIPPING_FEE", "500"),
        merge_price_policy=policy,
        merge_receipt_ttl=_receipt_ttl(),
    )
