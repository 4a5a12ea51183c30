from rest_framework import serializers

from catalog.models import Product
from catalog.serializers import MAX_STOCK_QUANTITY, ProductSummarySerializer
from .models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    productId = serializers.UUIDField(source="product_id", read_only=True)
    product = ProductSummarySerializer(read_only=True)
    amount = serializers.IntegerField(read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = Transaction
        fields = ["id", "productId", "product", "type", "quantity", "amount", "date", "reference", "notes", "createdAt"]
        read_only_fields = ["id", "type", "quantity", "date", "reference", "notes"]


class TransactionCreateSerializer(serializers.Serializer):
    productId = serializers.PrimaryKeyRelatedField(
        queryset=Product.objects.all(),
        source="product",
        pk_field=serializers.UUIDField(),
    )
    type = serializers.ChoiceField(choices=Transaction.Type.choices)
    quantity = serializers.IntegerField(min_value=-MAX_STOCK_QUANTITY, max_value=MAX_STOCK_QUANTITY)
    date = serializers.DateTimeField(required=False)
    reference = serializers.CharField(max_length=100, allow_blank=True, default="")
    notes = serializers.CharField(allow_blank=True, default="")

    def validate(self, attrs):
        quantity = attrs["quantity"]
        if attrs["type"] == Transaction.Type.ADJUSTMENT:
            if quantity == 0:
                raise serializers.ValidationError({"quantity": "Adjustment quantity cannot be zero."})
        elif quantity < 1:
            raise serializers.ValidationError({"quantity": "Inbound and outbound quantities must be positive."})
        return attrs


class TransactionUpdateSerializer(serializers.ModelSerializer):
    """Only bookkeeping fields are editable once a movement has been applied to stock."""

    IMMUTABLE_FIELDS = {
        "productId": ("product_id", serializers.UUIDField()),
        "type": ("type", serializers.ChoiceField(choices=Transaction.Type.choices)),
        "quantity": ("quantity", serializers.IntegerField()),
    }

    class Meta:
        model = Transaction
        fields = ["date", "reference", "notes"]

    def validate(self, attrs):
        errors = {}
        for key, (attr, field) in self.IMMUTABLE_FIELDS.items():
            if key not in self.initial_data:
                continue
            try:
                value = field.to_internal_value(self.initial_data[key])
            except serializers.ValidationError:
                value = None
            if value != getattr(self.instance, attr):
                errors[key] = "Cannot be changed after the movement is recorded."
        if errors:
            raise serializers.ValidationError(errors)
        return attrs


class TransactionFilterSerializer(serializers.Serializer):
    sortBy = serializers.ChoiceField(choices=["date", "amount"], default="date", source="sort_by")
    sortOrder = serializers.ChoiceField(choices=["asc", "desc"], default="asc", source="sort_order")
    type = serializers.ChoiceField(choices=Transaction.Type.choices, allow_blank=True, default="")
