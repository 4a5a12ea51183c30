from rest_framework import serializers
from .models import Category, Product

# range of the positive integer stock columns
MAX_STOCK_QUANTITY = 2147483647


class CategorySerializer(serializers.ModelSerializer):
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Category
        fields = ["id", "name", "description", "createdAt", "updatedAt"]
        read_only_fields = ["id"]


class ProductSerializer(serializers.ModelSerializer):
    """
    Full-replacement product schema. Writes take ``categoryId``; reads expand
    the category inline. Used for create, PUT and PATCH alike.
    """
    category = CategorySerializer(read_only=True)
    categoryId = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(),
        source="category",
        pk_field=serializers.UUIDField(),
    )
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    quantity = serializers.IntegerField(min_value=0, max_value=MAX_STOCK_QUANTITY)
    minStock = serializers.IntegerField(source="min_stock", min_value=0, max_value=MAX_STOCK_QUANTITY)
    isLowStock = serializers.BooleanField(source="is_low_stock", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "name",
            "sku",
            "categoryId",
            "category",
            "description",
            "quantity",
            "unit",
            "minStock",
            "isLowStock",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = ["id"]

    def validate(self, attrs):
        # an omitted description clears the stored one
        if not self.partial:
            attrs.setdefault("description", None)
        return attrs


class ProductSummarySerializer(serializers.ModelSerializer):
    """Product as embedded in order items and ledger entries."""
    minStock = serializers.IntegerField(source="min_stock", read_only=True)
    categoryId = serializers.UUIDField(source="category_id", read_only=True)

    class Meta:
        model = Product
        fields = ["id", "name", "sku", "categoryId", "quantity", "unit", "minStock"]
        read_only_fields = ["id", "name", "sku", "quantity", "unit"]
