from __future__ import annotations

from typing import Any, Optional

from rest_framework import status

from apps.api.exceptions import ApplicationError

from .items import ItemRef, item_ref_to_raw


class CartError(ApplicationError):
    """Base for cart failures. ``retryable`` tells clients whether trying again can help."""

    default_code = "CART_ERROR"
    default_message = "Cart operation failed"
    default_status = status.HTTP_400_BAD_REQUEST
    retryable = False

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            details=details,
            hint=hint,
            extra={"retryable": self.retryable},
        )


class InvalidQuantity(CartError):
    default_code = "INVALID_QUANTITY"
    default_message = "Quantity must be a whole number of at least 1"


class InvalidItemReference(CartError):
    default_code = "VALIDATION_ERROR"
    default_message = "Provide exactly one of productId or lotId"


class ItemNotFound(CartError):
    default_code = "ITEM_NOT_FOUND"
    default_message = "Item is no longer available"
    default_status = status.HTTP_404_NOT_FOUND

    def __init__(self, item: ItemRef, message: Optional[str] = None):
        self.item = item
        super().__init__(message, details=item_ref_to_raw(item))


class PersistenceError(CartError):
    default_code = "PERSISTENCE_ERROR"
    default_message = "Cart storage is temporarily unavailable"
    default_status = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
    retry_after = 1


class MergeIncomplete(CartError):
    default_code = "MERGE_INCOMPLETE"
    default_message = "Items from this device could not be moved into your account cart yet"
    default_status = status.HTTP_503_SERVICE_UNAVAILABLE
    retryable = True
    retry_after = 1

    def __init__(self, message: Optional[str] = None, *, pending_lines: int = 0):
        self.pending_lines = pending_lines
        super().__init__(
            message,
            details={"pendingLines": pending_lines},
            hint="Retry with POST /api/cart/merge/ or any cart request.",
        )


class LineConflict(Exception):
    """A concurrent writer created the same (owner, item) line first."""
