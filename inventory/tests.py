import uuid
from datetime import timedelta

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from catalog.models import Category, Product
from inventory.models import Transaction
from inventory.services import InventoryService, TransactionQuery


class LedgerFixturesMixin:
    def setUp(self):
        category = Category.objects.create(name="Hardware")
        self.product = Product.objects.create(
            name="Screw", sku="SCR-1", category=category, quantity=20, unit="pcs", min_stock=5
        )
        self.other = Product.objects.create(
            name="Washer", sku="WSH-1", category=category, quantity=8, unit="pcs", min_stock=2
        )
        now = timezone.now()
        self.inbound = Transaction.objects.create(
            product=self.product, type=Transaction.Type.INBOUND, quantity=12,
            date=now - timedelta(days=3), reference="PO-01-01-2026-0001",
        )
        self.outbound = Transaction.objects.create(
            product=self.product, type=Transaction.Type.OUTBOUND, quantity=30,
            date=now - timedelta(days=1), reference="SO-02-01-2026-0001",
        )
        self.adjustment = Transaction.objects.create(
            product=self.other, type=Transaction.Type.ADJUSTMENT, quantity=-2,
            date=now - timedelta(days=2), notes="damaged",
        )
        self.small_inbound = Transaction.objects.create(
            product=self.other, type=Transaction.Type.INBOUND, quantity=4,
            date=now,
        )


class TransactionModelTests(LedgerFixturesMixin, TestCase):
    def test_amount_is_signed_by_type(self):
        self.assertEqual(self.inbound.amount, 12)
        self.assertEqual(self.outbound.amount, -30)
        self.assertEqual(self.adjustment.amount, -2)


class TransactionListTests(LedgerFixturesMixin, APITestCase):

    def _ids(self, response):
        return [entry["id"] for entry in response.data]

    def test_defaults_to_date_ascending_over_every_type(self):
        response = self.client.get("/transaction/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(
            self._ids(response),
            [str(t.id) for t in (self.inbound, self.adjustment, self.outbound, self.small_inbound)],
        )

    def test_sort_by_date_descending(self):
        response = self.client.get("/transaction/", {"sortBy": "date", "sortOrder": "desc"})
        dates = [entry["date"] for entry in response.data]
        self.assertEqual(len(dates), 4)
        self.assertEqual(self._ids(response)[0], str(self.small_inbound.id))
        self.assertEqual(self._ids(response)[-1], str(self.inbound.id))

    def test_sort_by_amount_descending_is_non_increasing(self):
        response = self.client.get("/transaction/", {"sortBy": "amount", "sortOrder": "desc"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        amounts = [entry["amount"] for entry in response.data]
        self.assertEqual(amounts, [12, 4, -2, -30])
        self.assertEqual(amounts, sorted(amounts, reverse=True))

    def test_sort_by_amount_ascending(self):
        response = self.client.get("/transaction/", {"sortBy": "amount", "sortOrder": "asc"})
        self.assertEqual([entry["amount"] for entry in response.data], [-30, -2, 4, 12])

    def test_type_filter_returns_only_that_type(self):
        response = self.client.get("/transaction/", {"type": "INBOUND"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({entry["type"] for entry in response.data}, {"INBOUND"})
        self.assertEqual(len(response.data), 2)

    def test_blank_type_means_all(self):
        response = self.client.get("/transaction/", {"sortBy": "date", "sortOrder": "asc", "type": ""})
        self.assertEqual(len(response.data), 4)

    def test_filter_and_sort_combine(self):
        response = self.client.get("/transaction/", {"sortBy": "amount", "sortOrder": "asc", "type": "INBOUND"})
        self.assertEqual(self._ids(response), [str(self.small_inbound.id), str(self.inbound.id)])

    def test_invalid_parameters_are_rejected(self):
        response = self.client.get("/transaction/", {"sortBy": "price", "sortOrder": "up", "type": "TRANSFER"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("sortBy", response.data)
        self.assertIn("sortOrder", response.data)
        self.assertIn("type", response.data)

    def test_entries_embed_their_product(self):
        response = self.client.get("/transaction/", {"type": "ADJUSTMENT"})
        self.assertEqual(response.data[0]["product"]["sku"], "WSH-1")
        self.assertEqual(response.data[0]["notes"], "damaged")


class TransactionQueryTests(LedgerFixturesMixin, TestCase):
    def test_ties_are_broken_by_creation_order(self):
        same_amount = Transaction.objects.create(
            product=self.product, type=Transaction.Type.INBOUND, quantity=12, date=self.inbound.date
        )
        ordered = list(TransactionQuery.filtered(sort_by="amount", sort_order="asc", movement_type="INBOUND"))
        self.assertEqual([t.id for t in ordered[-2:]], [self.inbound.id, same_amount.id])


class InventoryServiceTests(LedgerFixturesMixin, TestCase):

    def test_inbound_movement_increases_stock(self):
        entry = InventoryService.record_movement(self.product, Transaction.Type.INBOUND, 5, reference="PO-X")

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 25)
        self.assertEqual(entry.amount, 5)
        self.assertEqual(entry.reference, "PO-X")

    def test_outbound_movement_decreases_stock(self):
        InventoryService.record_movement(self.product, Transaction.Type.OUTBOUND, 7)

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 13)

    def test_negative_adjustment(self):
        InventoryService.record_movement(self.product, Transaction.Type.ADJUSTMENT, -4, notes="shrinkage")

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 16)

    def test_movement_that_would_go_negative_writes_nothing(self):
        before = Transaction.objects.count()

        with self.assertRaisesMessage(ValueError, "Insufficient stock"):
            InventoryService.record_movement(self.product, Transaction.Type.OUTBOUND, 21)

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 20)
        self.assertEqual(Transaction.objects.count(), before)

    def test_movement_beyond_stock_column_range_is_refused(self):
        with self.assertRaisesMessage(ValueError, "would exceed"):
            InventoryService.record_movement(self.product, Transaction.Type.INBOUND, 2**31 - 1)

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 20)

    def test_void_reverses_the_movement(self):
        entry = InventoryService.record_movement(self.product, Transaction.Type.OUTBOUND, 6)

        InventoryService.void_movement(entry)

        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 20)
        self.assertFalse(Transaction.objects.filter(id=entry.id).exists())


class TransactionWriteAPITests(LedgerFixturesMixin, APITestCase):

    def test_post_records_movement(self):
        response = self.client.post(
            "/transaction/",
            {"productId": str(self.product.id), "type": "OUTBOUND", "quantity": 4, "reference": "SO-1"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["amount"], -4)
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 16)

    def test_post_rejects_bad_quantities(self):
        cases = [
            {"type": "INBOUND", "quantity": 0},
            {"type": "OUTBOUND", "quantity": -3},
            {"type": "ADJUSTMENT", "quantity": 0},
        ]
        for case in cases:
            with self.subTest(case=case):
                response = self.client.post(
                    "/transaction/", {"productId": str(self.product.id), **case}, format="json"
                )
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn("quantity", response.data)

    def test_post_rejects_out_of_range_quantity(self):
        for quantity in (2**31, -(2**31)):
            with self.subTest(quantity=quantity):
                response = self.client.post(
                    "/transaction/",
                    {"productId": str(self.product.id), "type": "ADJUSTMENT", "quantity": quantity},
                    format="json",
                )
                self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
                self.assertIn("quantity", response.data)
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 20)

    def test_post_over_stock_is_a_client_error(self):
        response = self.client.post(
            "/transaction/",
            {"productId": str(self.other.id), "type": "OUTBOUND", "quantity": 9},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("Insufficient stock", response.data["detail"])
        self.other.refresh_from_db()
        self.assertEqual(self.other.quantity, 8)

    def test_get_single_entry(self):
        response = self.client.get(f"/transaction/{self.inbound.id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["reference"], "PO-01-01-2026-0001")

    def test_get_missing_entry_returns_404(self):
        response = self.client.get(f"/transaction/{uuid.uuid4()}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_put_edits_bookkeeping_fields(self):
        response = self.client.put(
            f"/transaction/{self.inbound.id}/",
            {"reference": "PO-FIXED", "notes": "counted twice", "quantity": 12, "type": "INBOUND"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.inbound.refresh_from_db()
        self.assertEqual(self.inbound.reference, "PO-FIXED")
        self.assertEqual(self.inbound.notes, "counted twice")

    def test_put_accepts_echoed_movement_fields_in_other_spellings(self):
        response = self.client.put(
            f"/transaction/{self.inbound.id}/",
            {
                "productId": str(self.product.id).upper(),
                "type": "INBOUND",
                "quantity": 12.0,
                "notes": "recounted",
            },
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.inbound.refresh_from_db()
        self.assertEqual(self.inbound.notes, "recounted")

    def test_put_refuses_a_different_product(self):
        response = self.client.put(
            f"/transaction/{self.inbound.id}/",
            {"productId": str(self.other.id), "notes": "moved"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("productId", response.data)

    def test_put_refuses_to_change_movement_fields(self):
        response = self.client.put(
            f"/transaction/{self.inbound.id}/",
            {"quantity": 50, "type": "OUTBOUND", "notes": "oops"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("quantity", response.data)
        self.assertIn("type", response.data)
        self.inbound.refresh_from_db()
        self.assertEqual(self.inbound.quantity, 12)
        self.assertEqual(self.inbound.notes, "")

    def test_delete_reverses_stock(self):
        created = self.client.post(
            "/transaction/",
            {"productId": str(self.product.id), "type": "INBOUND", "quantity": 10},
            format="json",
        )

        response = self.client.delete(f"/transaction/{created.data['id']}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.product.refresh_from_db()
        self.assertEqual(self.product.quantity, 20)

    def test_delete_that_would_go_negative_is_refused(self):
        # written straight to the ledger, so the 12 washers were never added to stock
        entry = Transaction.objects.create(product=self.other, type=Transaction.Type.INBOUND, quantity=12)

        response = self.client.delete(f"/transaction/{entry.id}/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(Transaction.objects.filter(id=entry.id).exists())
