import uuid
from django.db import models
from django.utils import timezone

from catalog.models import Product


class Transaction(models.Model):
    class Type(models.TextChoices):
        INBOUND = "INBOUND", "Inbound"
        OUTBOUND = "OUTBOUND", "Outbound"
        ADJUSTMENT = "ADJUSTMENT", "Adjustment"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    product = models.ForeignKey(Product, related_name="transactions", on_delete=models.PROTECT)
    type = models.CharField(max_length=20, choices=Type.choices)
    # magnitude for INBOUND/OUTBOUND, signed delta for ADJUSTMENT
    quantity = models.IntegerField()
    date = models.DateTimeField(default=timezone.now)
    reference = models.CharField(max_length=100, blank=True)  # e.g. "SO-19-10-2026-0003"
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    @property
    def amount(self):
        """Signed stock delta: outbound movements count negative."""
        if self.type == self.Type.OUTBOUND:
            return -self.quantity
        return self.quantity

    def __str__(self):
        return f"{self.type} {self.quantity} x {self.product_id}"
