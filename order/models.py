import uuid
from decimal import Decimal

from django.db import models
from django.db.models import Q

from catalog.models import Product

# largest value the 12-digit, 2-decimal money columns hold
MAX_MONEY = Decimal("9999999999.99")


class Order(models.Model):
    class Type(models.TextChoices):
        PURCHASE = "PURCHASE", "Purchase"
        SALES = "SALES", "Sales"

    class Status(models.TextChoices):
        PENDING = "PENDING"
        APPROVED = "APPROVED"
        PROCESSING = "PROCESSING"
        COMPLETED = "COMPLETED"
        CANCELLED = "CANCELLED"

    TYPE_CODES = {
        "PURCHASE": "PO",
        "SALES": "SO",
    }

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    order_number = models.CharField(max_length=32, unique=True, editable=False)
    type = models.CharField(max_length=20, choices=Type.choices)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)

    # counterparty: supplier on purchases, customer on sales
    supplier = models.CharField(max_length=255, blank=True, null=True)
    customer = models.CharField(max_length=255, blank=True, null=True)

    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    notes = models.TextField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(type="PURCHASE", supplier__isnull=False, customer__isnull=True)
                    | Q(type="SALES", customer__isnull=False, supplier__isnull=True)
                ),
                name="order_counterparty_matches_type",
            ),
        ]

    @property
    def counterparty(self):
        return self.supplier if self.type == self.Type.PURCHASE else self.customer

    def __str__(self):
        return self.order_number


class OrderItem(models.Model):
    order = models.ForeignKey(Order, related_name="items", on_delete=models.CASCADE)
    # cleared when the product is removed from the catalog
    product = models.ForeignKey(
        Product,
        related_name="order_items",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
    )

    # Snapshot fields
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    class Meta:
        ordering = ["id"]


class OrderNumberSequence(models.Model):
    """Last number issued per order type per calendar day."""
    order_type = models.CharField(max_length=20, choices=Order.Type.choices)
    date = models.DateField()
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["order_type", "date"], name="unique_order_number_sequence"),
        ]
