from django.db import models
from django.utils import timezone


class Lot(models.Model):
    """An auction-style listing whose ``current_price`` moves as bids arrive."""

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    starting_price = models.DecimalField(max_digits=12, decimal_places=2)
    current_price = models.DecimalField(max_digits=12, decimal_places=2)
    unit = models.CharField(max_length=32, default="lot")
    available_quantity = models.CharField(max_length=64, blank=True, default="")
    location = models.CharField(max_length=128, blank=True, default="")
    image = models.TextField(blank=True, default="")
    start_time = models.DateTimeField(default=timezone.now)
    end_time = models.DateTimeField()
    total_bids = models.PositiveIntegerField(default=0)
    is_trending = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ("-is_trending", "end_time")
        indexes = [
            models.Index(fields=["is_active", "end_time"], name="lot_active_end_idx"),
        ]

    def __str__(self):
        return self.name
