import logging

from django.db import transaction
from django.db.models import Case, F, IntegerField, When

from catalog.models import Product
from catalog.serializers import MAX_STOCK_QUANTITY
from .models import Transaction

logger = logging.getLogger(__name__)


def signed_amount():
    return Case(
        When(type=Transaction.Type.OUTBOUND, then=-F("quantity")),
        default=F("quantity"),
        output_field=IntegerField(),
    )


class TransactionQuery:

    @staticmethod
    def filtered(sort_by="date", sort_order="asc", movement_type=None):
        """
        Ledger entries filtered by movement type and sorted server-side.
        ``sort_by`` is "date" or "amount" (the signed delta); an empty
        ``movement_type`` means every type.
        """
        queryset = Transaction.objects.select_related("product").annotate(signed_amount=signed_amount())
        if movement_type:
            queryset = queryset.filter(type=movement_type)

        field = "signed_amount" if sort_by == "amount" else "date"
        prefix = "-" if sort_order == "desc" else ""
        return queryset.order_by(f"{prefix}{field}", f"{prefix}created_at")


class InventoryService:

    @staticmethod
    def _apply_delta(product_id, delta, reason):
        product = Product.objects.select_for_update().get(pk=product_id)
        new_quantity = product.quantity + delta
        if new_quantity > MAX_STOCK_QUANTITY:
            raise ValueError(f"Stock for {product.sku} would exceed {MAX_STOCK_QUANTITY}")
        if new_quantity < 0:
            raise ValueError(
                f"Insufficient stock for {product.sku}: {product.quantity} on hand, {reason} needs {-delta}"
            )
        product.quantity = new_quantity
        product.save(update_fields=["quantity", "updated_at"])
        return product

    @staticmethod
    @transaction.atomic
    def record_movement(product, movement_type, quantity, date=None, reference="", notes=""):
        """Write a ledger entry and apply its signed delta to on-hand stock."""
        entry = Transaction(
            product=product,
            type=movement_type,
            quantity=quantity,
            reference=reference or "",
            notes=notes or "",
        )
        if date is not None:
            entry.date = date
        InventoryService._apply_delta(product.pk, entry.amount, reason=movement_type.lower())
        entry.save()

        logger.info(
            "Recorded %s transaction=%s product=%s delta=%s", movement_type, entry.id, product.pk, entry.amount
        )
        return entry

    @staticmethod
    @transaction.atomic
    def void_movement(entry):
        """Delete a ledger entry and reverse its effect on stock."""
        InventoryService._apply_delta(entry.product_id, -entry.amount, reason="reversal")
        entry_id = entry.id
        entry.delete()
        logger.info("Voided transaction=%s product=%s delta=%s", entry_id, entry.product_id, -entry.amount)
