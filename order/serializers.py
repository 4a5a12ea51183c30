from decimal import Decimal

from rest_framework import serializers

from catalog.models import Product
from catalog.serializers import ProductSummarySerializer
from .models import MAX_MONEY, Order, OrderItem

MAX_ITEM_QUANTITY = 2147483647


class OrderItemSerializer(serializers.ModelSerializer):
    productId = serializers.UUIDField(source="product_id", read_only=True, allow_null=True)
    product = ProductSummarySerializer(read_only=True, allow_null=True)
    unitPrice = serializers.DecimalField(source="unit_price", max_digits=12, decimal_places=2, read_only=True)
    totalPrice = serializers.DecimalField(source="total_price", max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = ["id", "productId", "product", "quantity", "unitPrice", "totalPrice"]
        read_only_fields = ["id", "quantity"]


class OrderSerializer(serializers.ModelSerializer):
    orderNumber = serializers.CharField(source="order_number", read_only=True)
    customerSupplier = serializers.CharField(source="counterparty", read_only=True)
    totalAmount = serializers.DecimalField(source="total_amount", max_digits=12, decimal_places=2, read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)
    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "orderNumber",
            "type",
            "status",
            "customerSupplier",
            "supplier",
            "customer",
            "totalAmount",
            "notes",
            "createdAt",
            "updatedAt",
            "items",
        ]
        read_only_fields = ["id", "type", "status", "supplier", "customer", "notes"]


class OrderItemWriteSerializer(serializers.Serializer):
    productId = serializers.PrimaryKeyRelatedField(
        queryset=Product.objects.all(),
        source="product",
        pk_field=serializers.UUIDField(),
    )
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_ITEM_QUANTITY)
    unitPrice = serializers.DecimalField(
        source="unit_price",
        max_digits=12,
        decimal_places=2,
        min_value=Decimal("0"),
        max_value=MAX_MONEY,
    )


class OrderWriteSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=Order.Type.choices)
    customerSupplier = serializers.CharField(source="customer_supplier", max_length=255)
    status = serializers.ChoiceField(choices=Order.Status.choices, default=Order.Status.PENDING)
    items = OrderItemWriteSerializer(many=True, allow_empty=False)
    notes = serializers.CharField(allow_blank=True, allow_null=True, default=None)

    def validate(self, attrs):
        # every line total and the order total must fit the money columns
        total = Decimal("0")
        for position, item in enumerate(attrs["items"]):
            line_total = Decimal(item["quantity"]) * item["unit_price"]
            if line_total > MAX_MONEY:
                raise serializers.ValidationError(
                    {"items": [f"Item {position + 1}: quantity x unitPrice exceeds {MAX_MONEY}."]}
                )
            total += line_total
        if total > MAX_MONEY:
            raise serializers.ValidationError({"items": [f"Order total exceeds {MAX_MONEY}."]})
        return attrs

    def to_service_kwargs(self):
        data = self.validated_data
        return {
            "order_type": data["type"],
            "customer_supplier": data["customer_supplier"],
            "status": data["status"],
            "items": data["items"],
            "notes": data.get("notes"),
        }
