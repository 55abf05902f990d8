from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .items import ItemRef, LotRef, ProductRef


class CartLine(models.Model):
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="cart_lines"
    )
    product = models.ForeignKey(
        "catalog.Product",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="cart_lines",
    )
    lot = models.ForeignKey(
        "auctions.Lot",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="cart_lines",
    )
    quantity = models.PositiveIntegerField()
    # Price captured when the line was created; never follows the live price.
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "cart_lines"
        ordering = ("-created_at", "-id")
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(product__isnull=False, lot__isnull=True)
                    | Q(product__isnull=True, lot__isnull=False)
                ),
                name="cart_line_single_item_ref",
            ),
            models.CheckConstraint(
                condition=Q(quantity__gte=1), name="cart_line_quantity_positive"
            ),
            models.UniqueConstraint(
                fields=["owner", "product"],
                condition=Q(product__isnull=False),
                name="cart_line_unique_owner_product",
            ),
            models.UniqueConstraint(
                fields=["owner", "lot"],
                condition=Q(lot__isnull=False),
                name="cart_line_unique_owner_lot",
            ),
        ]

    @property
    def item(self) -> ItemRef:
        if self.product_id is not None:
            return ProductRef(self.product_id)
        return LotRef(self.lot_id)

    def __str__(self):
        return f"CartLine {self.id} for {self.owner_id}: {self.item} x{self.quantity}"


class CartMergeReceipt(models.Model):
    """
    How much of one device cart line has been folded into an owner's cart.

    ``line_key`` is the device cart token joined with the line's key, so a
    line is recognised even when the device cart outlives its merge.
    """

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="cart_merge_receipts"
    )
    line_key = models.CharField(max_length=100)
    quantity = models.PositiveIntegerField()
    merged_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "cart_merge_receipts"
        constraints = [
            models.UniqueConstraint(
                fields=["owner", "line_key"], name="cart_merge_receipt_unique_line"
            )
        ]
        indexes = [models.Index(fields=["merged_at"], name="cart_merge_receipt_age_idx")]

    def __str__(self):
        return f"CartMergeReceipt {self.line_key} x{self.quantity} for {self.owner_id}"
