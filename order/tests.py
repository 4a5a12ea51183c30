import re
import uuid
from datetime import date
from decimal import Decimal
from unittest.mock import patch

from django.db import DatabaseError, IntegrityError, transaction
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from catalog.models import Category, Product

from .models import Order, OrderItem, OrderNumberSequence
from .services import OrderService


class OrderFixturesMixin:
    def setUp(self):
        self.category = Category.objects.create(name="Order Test Category")
        self.p1 = Product.objects.create(
            name="Bolt", sku="BOLT-1", category=self.category, quantity=100, unit="pcs", min_stock=10
        )
        self.p2 = Product.objects.create(
            name="Nut", sku="NUT-1", category=self.category, quantity=50, unit="pcs", min_stock=5
        )

    def _payload(self, **overrides):
        payload = {
            "type": "SALES",
            "customerSupplier": "Acme",
            "status": "PENDING",
            "items": [
                {"productId": str(self.p1.id), "quantity": 3, "unitPrice": 10},
                {"productId": str(self.p2.id), "quantity": 1, "unitPrice": 25},
            ],
        }
        payload.update(overrides)
        return payload


class OrderViewsTests(OrderFixturesMixin, APITestCase):

    def test_create_sales_order_computes_totals_and_routes_customer(self):
        response = self.client.post("/orders/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        body = response.json()
        self.assertIsInstance(body["totalAmount"], (int, float))
        self.assertEqual(body["totalAmount"], 55)
        self.assertEqual(body["customer"], "Acme")
        self.assertEqual(body["customerSupplier"], "Acme")
        self.assertIsNone(body["supplier"])
        self.assertEqual([item["totalPrice"] for item in body["items"]], [30, 25])
        self.assertEqual([item["unitPrice"] for item in body["items"]], [10, 25])
        self.assertIsInstance(body["items"][0]["unitPrice"], (int, float))
        self.assertEqual(response.data["items"][0]["product"]["sku"], "BOLT-1")

        order = Order.objects.get(id=response.data["id"])
        self.assertEqual(order.total_amount, Decimal("55.00"))
        self.assertEqual(order.customer, "Acme")
        self.assertIsNone(order.supplier)
        self.assertEqual(order.items.count(), 2)

    def test_create_purchase_order_routes_supplier(self):
        response = self.client.post(
            "/orders/",
            self._payload(type="PURCHASE", customerSupplier="Steel Co"),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        order = Order.objects.get(id=response.data["id"])
        self.assertEqual(order.supplier, "Steel Co")
        self.assertIsNone(order.customer)
        self.assertEqual(order.counterparty, "Steel Co")
        self.assertTrue(order.order_number.startswith("PO-"))

    def test_order_number_uses_type_code_and_todays_date(self):
        response = self.client.post("/orders/", self._payload(), format="json")

        today = timezone.localdate().strftime("%d-%m-%Y")
        self.assertRegex(response.data["orderNumber"], rf"^SO-{today}-\d{{4}}$")

    def test_order_numbers_are_sequential_per_type(self):
        first = self.client.post("/orders/", self._payload(), format="json")
        second = self.client.post("/orders/", self._payload(), format="json")
        purchase = self.client.post("/orders/", self._payload(type="PURCHASE"), format="json")

        self.assertTrue(first.data["orderNumber"].endswith("-0001"))
        self.assertTrue(second.data["orderNumber"].endswith("-0002"))
        self.assertTrue(purchase.data["orderNumber"].endswith("-0001"))
        numbers = list(Order.objects.values_list("order_number", flat=True))
        self.assertEqual(len(numbers), len(set(numbers)))

    def test_rejects_empty_items(self):
        response = self.client.post("/orders/", self._payload(items=[]), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("items", response.data)
        self.assertEqual(Order.objects.count(), 0)

    def test_rejects_malformed_item_values(self):
        bad_items = [
            {"productId": str(self.p1.id), "quantity": 0, "unitPrice": 10},
            {"productId": str(self.p1.id), "quantity": 2, "unitPrice": -1},
            {"productId": str(self.p1.id), "quantity": "three", "unitPrice": 10},
            {"productId": str(uuid.uuid4()), "quantity": 1, "unitPrice": 10},
            {"productId": "p1", "quantity": 1, "unitPrice": 10},
        ]
        for item in bad_items:
            with self.subTest(item=item):
                response = self.client.post("/orders/", self._payload(items=[item]), format="json")
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn("items", response.data)

        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)

    def test_rejects_unknown_type_and_status(self):
        response = self.client.post("/orders/", self._payload(type="RETURN", status="LOST"), format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("type", response.data)
        self.assertIn("status", response.data)

    def test_failed_item_insert_leaves_no_order_behind(self):
        with patch.object(OrderItem.objects, "bulk_create", side_effect=DatabaseError("insert failed")):
            response = self.client.post("/orders/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data, {"detail": "Internal server error"})
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderNumberSequence.objects.count(), 0)

    def test_list_orders_newest_first_with_expanded_products(self):
        older = self.client.post("/orders/", self._payload(), format="json")
        newer = self.client.post("/orders/", self._payload(type="PURCHASE"), format="json")

        response = self.client.get("/orders/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([o["id"] for o in response.data], [newer.data["id"], older.data["id"]])
        items = response.data[0]["items"]
        self.assertEqual(items[0]["productId"], str(self.p1.id))
        self.assertEqual(items[0]["product"]["name"], "Bolt")

    def test_list_shows_detached_items_without_product(self):
        created = self.client.post("/orders/", self._payload(), format="json")
        OrderItem.objects.filter(order_id=created.data["id"], product=self.p2).update(product=None)

        response = self.client.get("/orders/")

        detached = response.data[0]["items"][1]
        self.assertIsNone(detached["productId"])
        self.assertIsNone(detached["product"])
        self.assertEqual(Decimal(detached["totalPrice"]), Decimal("25"))

    def test_get_order_detail(self):
        created = self.client.post("/orders/", self._payload(notes="rush"), format="json")

        response = self.client.get(f"/orders/{created.data['id']}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["notes"], "rush")
        self.assertEqual(len(response.data["items"]), 2)

    def test_get_missing_order_returns_404(self):
        response = self.client.get(f"/orders/{uuid.uuid4()}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_patch_replaces_items_and_reroutes_counterparty(self):
        created = self.client.post("/orders/", self._payload(), format="json")

        response = self.client.patch(
            f"/orders/{created.data['id']}/",
            self._payload(
                type="PURCHASE",
                customerSupplier="Steel Co",
                status="APPROVED",
                items=[{"productId": str(self.p2.id), "quantity": 4, "unitPrice": "2.50"}],
            ),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["orderNumber"], created.data["orderNumber"])
        order = Order.objects.get(id=created.data["id"])
        self.assertEqual(order.status, Order.Status.APPROVED)
        self.assertEqual(order.supplier, "Steel Co")
        self.assertIsNone(order.customer)
        self.assertEqual(order.total_amount, Decimal("10.00"))
        self.assertEqual(list(order.items.values_list("total_price", flat=True)), [Decimal("10.00")])

    def test_order_read_shape_can_be_sent_back_as_an_edit(self):
        created = self.client.post("/orders/", self._payload(type="PURCHASE", customerSupplier="Steel Co"), format="json")
        fetched = self.client.get(f"/orders/{created.data['id']}/").json()

        self.assertEqual(fetched["customerSupplier"], "Steel Co")
        edit = {
            "type": fetched["type"],
            "customerSupplier": fetched["customerSupplier"],
            "status": "COMPLETED",
            "notes": fetched["notes"],
            "items": [
                {"productId": item["productId"], "quantity": item["quantity"], "unitPrice": item["unitPrice"]}
                for item in fetched["items"]
            ],
        }
        response = self.client.patch(f"/orders/{fetched['id']}/", edit, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        order = Order.objects.get(id=fetched["id"])
        self.assertEqual(order.supplier, "Steel Co")
        self.assertEqual(order.total_amount, Decimal("55.00"))

    def test_create_rejects_totals_that_overflow_money_columns(self):
        oversized = [
            [{"productId": str(self.p1.id), "quantity": 2, "unitPrice": "9999999999.99"}],
            [{"productId": str(self.p1.id), "quantity": 10**12, "unitPrice": "1.00"}],
            [
                {"productId": str(self.p1.id), "quantity": 1, "unitPrice": "6000000000.00"},
                {"productId": str(self.p2.id), "quantity": 1, "unitPrice": "6000000000.00"},
            ],
        ]
        for items in oversized:
            with self.subTest(items=items):
                response = self.client.post("/orders/", self._payload(items=items), format="json")
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn("items", response.data)

        self.assertEqual(Order.objects.count(), 0)
        listing = self.client.get("/orders/")
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual(listing.data, [])

    def test_patch_rejects_overflowing_total_and_keeps_the_order(self):
        created = self.client.post("/orders/", self._payload(), format="json")

        response = self.client.patch(
            f"/orders/{created.data['id']}/",
            self._payload(items=[{"productId": str(self.p1.id), "quantity": 2, "unitPrice": "9999999999.99"}]),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("items", response.data)
        order = Order.objects.get(id=created.data["id"])
        self.assertEqual(order.total_amount, Decimal("55.00"))
        self.assertEqual(order.items.count(), 2)
        listing = self.client.get("/orders/")
        self.assertEqual(listing.status_code, status.HTTP_200_OK)
        self.assertEqual(len(listing.data), 1)

    def test_patch_missing_order_returns_404(self):
        response = self.client.patch(f"/orders/{uuid.uuid4()}/", self._payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_delete_order_removes_items_but_not_products(self):
        created = self.client.post("/orders/", self._payload(), format="json")

        response = self.client.delete(f"/orders/{created.data['id']}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)
        self.assertEqual(Product.objects.count(), 2)


class OrderServiceTests(OrderFixturesMixin, TestCase):

    def _items(self, *lines):
        products = [self.p1, self.p2]
        return [
            {"product": products[i % 2], "quantity": qty, "unit_price": Decimal(price)}
            for i, (qty, price) in enumerate(lines)
        ]

    def test_total_is_sum_of_line_totals(self):
        cases = [
            [(1, "0.00")],
            [(3, "10.00"), (1, "25.00")],
            [(7, "1.99"), (2, "0.01"), (12, "3.50")],
        ]
        for lines in cases:
            with self.subTest(lines=lines):
                order = OrderService.create_order(Order.Type.SALES, "Acme", self._items(*lines))

                expected = sum(Decimal(qty) * Decimal(price) for qty, price in lines)
                self.assertEqual(order.total_amount, expected)
                for item in order.items.all():
                    self.assertEqual(item.total_price, item.quantity * item.unit_price)
                self.assertEqual(sum(i.total_price for i in order.items.all()), order.total_amount)

    def test_exactly_one_counterparty_is_set(self):
        for order_type in Order.Type.values:
            with self.subTest(order_type=order_type):
                order = OrderService.create_order(order_type, "Party", self._items((1, "1.00")))
                self.assertEqual([order.supplier is not None, order.customer is not None].count(True), 1)
                self.assertEqual(order.counterparty, "Party")

    def test_date_is_taken_when_the_order_is_created(self):
        with patch("order.services.timezone.localdate", return_value=date(2030, 1, 2)):
            first = OrderService.create_order(Order.Type.PURCHASE, "Steel Co", self._items((1, "1.00")))
        with patch("order.services.timezone.localdate", return_value=date(2030, 1, 3)):
            second = OrderService.create_order(Order.Type.PURCHASE, "Steel Co", self._items((1, "1.00")))

        self.assertEqual(first.order_number, "PO-02-01-2030-0001")
        self.assertEqual(second.order_number, "PO-03-01-2030-0001")

    @override_settings(ORDER_NUMBER_SEQUENCE_WIDTH=6)
    def test_sequence_width_is_configurable(self):
        order = OrderService.create_order(Order.Type.SALES, "Acme", self._items((1, "1.00")))
        self.assertTrue(re.search(r"-000001$", order.order_number))

    def test_generator_skips_numbers_already_taken(self):
        with patch("order.services.timezone.localdate", return_value=date(2030, 5, 6)):
            Order.objects.create(order_number="SO-06-05-2030-0001", type=Order.Type.SALES, customer="Legacy")
            order = OrderService.create_order(Order.Type.SALES, "Acme", self._items((1, "1.00")))

        self.assertEqual(order.order_number, "SO-06-05-2030-0002")

    def test_service_refuses_total_beyond_money_columns(self):
        with self.assertRaisesMessage(ValueError, "Order total exceeds"):
            OrderService.create_order(Order.Type.SALES, "Acme", self._items((2, "9999999999.99")))

        self.assertEqual(Order.objects.count(), 0)
        self.assertEqual(OrderItem.objects.count(), 0)

    def test_create_without_items_is_refused(self):
        with self.assertRaises(ValueError):
            OrderService.create_order(Order.Type.SALES, "Acme", [])
        self.assertEqual(Order.objects.count(), 0)

    def test_database_refuses_mismatched_counterparty(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Order.objects.create(
                    order_number="SO-01-01-2030-9999",
                    type=Order.Type.SALES,
                    supplier="Wrong slot",
                    customer="Acme",
                )
