import logging
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from .models import MAX_MONEY, Order, OrderItem, OrderNumberSequence

logger = logging.getLogger(__name__)


class OrderService:

    @staticmethod
    def _next_sequence_value(order_type, day):
        sequence, _ = OrderNumberSequence.objects.select_for_update().get_or_create(
            order_type=order_type,
            date=day,
        )
        sequence.last_value = F("last_value") + 1
        sequence.save(update_fields=["last_value"])
        sequence.refresh_from_db(fields=["last_value"])
        return sequence.last_value

    @staticmethod
    def _generate_order_number(order_type):
        # "today" is taken per call, never cached at import time
        day = timezone.localdate()
        width = getattr(settings, "ORDER_NUMBER_SEQUENCE_WIDTH", 4)
        prefix = f"{Order.TYPE_CODES[order_type]}-{day:%d-%m-%Y}"
        while True:
            value = OrderService._next_sequence_value(order_type, day)
            candidate = f"{prefix}-{value:0{width}d}"
            if not Order.objects.filter(order_number=candidate).exists():
                return candidate

    @staticmethod
    def _counterparty_fields(order_type, counterparty):
        if order_type == Order.Type.PURCHASE:
            return {"supplier": counterparty, "customer": None}
        return {"customer": counterparty, "supplier": None}

    @staticmethod
    def _line_total(quantity, unit_price):
        return Decimal(quantity) * Decimal(unit_price)

    @staticmethod
    def _order_total(line_items):
        total = sum((item.total_price for item in line_items), Decimal("0"))
        if total > MAX_MONEY or any(item.total_price > MAX_MONEY for item in line_items):
            raise ValueError(f"Order total exceeds {MAX_MONEY}")
        return total

    @staticmethod
    def _build_items(order, items):
        return [
            OrderItem(
                order=order,
                product=item["product"],
                quantity=item["quantity"],
                unit_price=item["unit_price"],
                total_price=OrderService._line_total(item["quantity"], item["unit_price"]),
            )
            for item in items
        ]

    @staticmethod
    @transaction.atomic
    def create_order(order_type, customer_supplier, items, status=Order.Status.PENDING, notes=None):
        """
        items: list of dicts like:
        [{"product": Product obj, "quantity": 3, "unit_price": Decimal("10.00")}]
        """
        if not items:
            raise ValueError("At least one item is required")

        order = Order(
            order_number=OrderService._generate_order_number(order_type),
            type=order_type,
            status=status,
            notes=notes,
            **OrderService._counterparty_fields(order_type, customer_supplier),
        )
        line_items = OrderService._build_items(order, items)
        order.total_amount = OrderService._order_total(line_items)
        order.save()
        OrderItem.objects.bulk_create(line_items)

        logger.info(
            "Created order=%s number=%s items=%s total=%s",
            order.id, order.order_number, len(line_items), order.total_amount,
        )
        return order

    @staticmethod
    @transaction.atomic
    def update_order(order, order_type, customer_supplier, items, status=Order.Status.PENDING, notes=None):
        """Replace an order's header and line items; the order number is kept."""
        if not items:
            raise ValueError("At least one item is required")

        order.type = order_type
        order.status = status
        order.notes = notes
        for field, value in OrderService._counterparty_fields(order_type, customer_supplier).items():
            setattr(order, field, value)

        order.items.all().delete()
        line_items = OrderService._build_items(order, items)
        order.total_amount = OrderService._order_total(line_items)
        order.save()
        OrderItem.objects.bulk_create(line_items)

        logger.info("Updated order=%s items=%s total=%s", order.id, len(line_items), order.total_amount)
        return order

    @staticmethod
    @transaction.atomic
    def delete_order(order):
        order_id = order.id
        order.delete()
        logger.info("Deleted order=%s", order_id)
