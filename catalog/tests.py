import uuid
from decimal import Decimal
from unittest.mock import patch

from django.db import DatabaseError
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from catalog.models import Category, Product
from catalog.services import DELETE, DETACH, PRODUCT_REFERENCE_RULES, ProductService
from inventory.models import Transaction
from order.models import Order, OrderItem


def _make_order(product, quantity=2, unit_price="15.00"):
    order = Order.objects.create(
        order_number=f"SO-01-01-2026-{uuid.uuid4().hex[:4]}",
        type=Order.Type.SALES,
        customer="Acme",
        total_amount=Decimal(unit_price) * quantity,
    )
    item = OrderItem.objects.create(
        order=order,
        product=product,
        quantity=quantity,
        unit_price=Decimal(unit_price),
        total_price=Decimal(unit_price) * quantity,
    )
    return order, item


class CatalogModelTests(TestCase):
    def test_category_str_returns_name(self):
        category = Category.objects.create(name="Gadgets")
        self.assertEqual(str(category), "Gadgets")

    def test_product_is_low_stock_at_or_below_threshold(self):
        category = Category.objects.create(name="Cables")
        product = Product.objects.create(
            name="HDMI Cable", sku="HDMI-01", category=category, quantity=5, unit="pcs", min_stock=5
        )
        self.assertTrue(product.is_low_stock)
        product.quantity = 6
        self.assertFalse(product.is_low_stock)

    def test_reference_rules_cover_every_product_dependent(self):
        rules = {(rule.model, rule.field): rule.action for rule in PRODUCT_REFERENCE_RULES}
        self.assertEqual(rules[("order.OrderItem", "product")], DETACH)
        self.assertEqual(rules[("inventory.Transaction", "product")], DELETE)


class ProductAPITests(APITestCase):
    def setUp(self):
        self.category = Category.objects.create(name="Electrical")
        self.other_category = Category.objects.create(name="Plumbing")
        self.product = Product.objects.create(
            name="Copper Wire",
            sku="CW-25",
            category=self.category,
            description="100m roll",
            quantity=40,
            unit="roll",
            min_stock=10,
        )

    def _payload(self, **overrides):
        payload = {
            "name": "Copper Wire 2.5mm",
            "sku": "CW-25-100",
            "categoryId": str(self.other_category.id),
            "description": "Updated roll",
            "quantity": 35,
            "unit": "roll",
            "minStock": 5,
        }
        payload.update(overrides)
        return payload

    def test_get_product_expands_category(self):
        response = self.client.get(f"/products/{self.product.id}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["sku"], "CW-25")
        self.assertEqual(response.data["minStock"], 10)
        self.assertEqual(response.data["category"]["name"], "Electrical")

    def test_get_missing_product_returns_404(self):
        response = self.client.get(f"/products/{uuid.uuid4()}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_create_product(self):
        response = self.client.post(
            "/products/",
            {
                "name": "PVC Pipe",
                "sku": "PVC-20",
                "categoryId": str(self.other_category.id),
                "quantity": 12,
                "unit": "m",
                "minStock": 3,
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        product = Product.objects.get(sku="PVC-20")
        self.assertEqual(product.category_id, self.other_category.id)
        self.assertIsNone(product.description)

    def test_create_product_rejects_duplicate_sku(self):
        response = self.client.post(
            "/products/",
            self._payload(sku="CW-25"),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("sku", response.data)

    def test_list_products(self):
        response = self.client.get("/products/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p["sku"] for p in response.data], ["CW-25"])

    def test_patch_overwrites_all_fields(self):
        response = self.client.patch(f"/products/{self.product.id}/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["category"]["name"], "Plumbing")
        self.product.refresh_from_db()
        self.assertEqual(self.product.name, "Copper Wire 2.5mm")
        self.assertEqual(self.product.sku, "CW-25-100")
        self.assertEqual(self.product.category_id, self.other_category.id)
        self.assertEqual(self.product.quantity, 35)
        self.assertEqual(self.product.min_stock, 5)

    def test_patch_without_description_clears_it(self):
        payload = self._payload()
        payload.pop("description")

        response = self.client.patch(f"/products/{self.product.id}/", payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.product.refresh_from_db()
        self.assertIsNone(self.product.description)

    def test_patch_rejects_invalid_category_reference_before_writing(self):
        response = self.client.patch(
            f"/products/{self.product.id}/",
            self._payload(categoryId="not-an-id"),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("categoryId", response.data)
        self.product.refresh_from_db()
        self.assertEqual(self.product.name, "Copper Wire")
        self.assertEqual(self.product.category_id, self.category.id)

    def test_patch_rejects_unknown_category(self):
        response = self.client.patch(
            f"/products/{self.product.id}/",
            self._payload(categoryId=str(uuid.uuid4())),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("categoryId", response.data)

    def test_patch_names_every_failing_field(self):
        response = self.client.patch(
            f"/products/{self.product.id}/",
            self._payload(quantity=-1, minStock=-3, name=""),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("quantity", response.data)
        self.assertIn("minStock", response.data)
        self.assertIn("name", response.data)
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 40)

    def test_out_of_range_stock_numbers_are_validation_errors(self):
        response = self.client.patch(
            f"/products/{self.product.id}/",
            self._payload(quantity=2**31, minStock=10**20),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("quantity", response.data)
        self.assertIn("minStock", response.data)
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 40)

    def test_patch_requires_full_payload(self):
        response = self.client.patch(
            f"/products/{self.product.id}/",
            {"name": "Only a name"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("sku", response.data)
        self.assertIn("unit", response.data)

    def test_patch_unexpected_failure_returns_generic_500(self):
        with patch("catalog.views.ProductService.update_product", side_effect=DatabaseError("disk full")):
            response = self.client.patch(f"/products/{self.product.id}/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {"detail": "Internal server error"})


class ProductDeletionTests(APITestCase):
    def setUp(self):
        self.category = Category.objects.create(name="Tools")
        self.product = Product.objects.create(
            name="Hammer", sku="HAM-1", category=self.category, quantity=9, unit="pcs", min_stock=2
        )
        self.keeper = Product.objects.create(
            name="Wrench", sku="WR-1", category=self.category, quantity=4, unit="pcs", min_stock=1
        )
        self.order_a, self.item_a = _make_order(self.product, quantity=2, unit_price="15.00")
        self.order_b, self.item_b = _make_order(self.product, quantity=1, unit_price="7.50")
        _, self.keeper_item = _make_order(self.keeper)
        for qty in (3, 5, 1):
            Transaction.objects.create(product=self.product, type=Transaction.Type.INBOUND, quantity=qty)
        Transaction.objects.create(product=self.keeper, type=Transaction.Type.INBOUND, quantity=4)

    def test_delete_detaches_items_and_removes_transactions(self):
        response = self.client.delete(f"/products/{self.product.id}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(id=self.product.id).exists())
        self.assertEqual(Transaction.objects.filter(product_id=self.product.id).count(), 0)

        for item, quantity, unit_price in ((self.item_a, 2, "15.00"), (self.item_b, 1, "7.50")):
            item.refresh_from_db()
            self.assertIsNone(item.product_id)
            self.assertEqual(item.quantity, quantity)
            self.assertEqual(item.unit_price, Decimal(unit_price))
            self.assertEqual(item.total_price, Decimal(unit_price) * quantity)
        self.assertEqual(OrderItem.objects.count(), 3)

    def test_delete_leaves_other_products_untouched(self):
        self.client.delete(f"/products/{self.product.id}/")

        self.keeper_item.refresh_from_db()
        self.assertEqual(self.keeper_item.product_id, self.keeper.id)
        self.assertEqual(Transaction.objects.filter(product=self.keeper).count(), 1)

    def test_service_reports_affected_rows(self):
        affected = ProductService.delete_product(self.product)
        self.assertEqual(affected, {"order.OrderItem": 2, "inventory.Transaction": 3})

    def test_delete_missing_product_returns_404_and_mutates_nothing(self):
        response = self.client.delete(f"/products/{uuid.uuid4()}/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(Product.objects.count(), 2)
        self.assertEqual(Transaction.objects.count(), 4)
        self.assertEqual(OrderItem.objects.filter(product__isnull=True).count(), 0)

    def test_failed_delete_rolls_back_every_step(self):
        with patch.object(Product, "delete", side_effect=DatabaseError("locked")):
            response = self.client.delete(f"/products/{self.product.id}/")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {"detail": "Internal server error"})
        self.assertTrue(Product.objects.filter(id=self.product.id).exists())
        self.assertEqual(Transaction.objects.filter(product=self.product).count(), 3)
        self.item_a.refresh_from_db()
        self.assertEqual(self.item_a.product_id, self.product.id)

    def test_dependent_missing_from_rules_blocks_deletion(self):
        rules = tuple(rule for rule in PRODUCT_REFERENCE_RULES if rule.model != "inventory.Transaction")

        with self.assertRaises(DatabaseError):
            ProductService.delete_product(self.product, rules=rules)

        self.assertTrue(Product.objects.filter(id=self.product.id).exists())
        self.item_a.refresh_from_db()
        self.assertEqual(self.item_a.product_id, self.product.id)


class CategoryAPITests(APITestCase):
    def test_create_and_list_categories(self):
        created = self.client.post("/categories/", {"name": "Paint"}, format="json")
        self.assertEqual(created.status_code, status.HTTP_201_CREATED, created.data)

        response = self.client.get("/categories/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c["name"] for c in response.data], ["Paint"])
