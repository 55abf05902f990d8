import unittest
from datetime import datetime, timezone
from decimal import Decimal

from apps.carts.dtos import CartLineDTO
from apps.carts.items import LotRef, ProductRef
from apps.carts.session import SessionCartStore

NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


class FakeSession(dict):
    session_key = "abc123"


class SessionCartStoreTests(unittest.TestCase):
    def setUp(self):
        self.session = FakeSession()
        self.store = SessionCartStore(self.session, key="cart", clock=lambda: NOW)

    def make_line(self, key, item, quantity=1, price="10.00"):
        return CartLineDTO(
            id=key,
            owner_id=None,
            item=item,
            quantity=quantity,
            unit_price=Decimal(price),
            created_at=NOW,
            updated_at=NOW,
        )

    def test_empty_session_loads_no_lines(self):
        self.assertEqual(self.store.load(), [])

    def test_saved_lines_load_back(self):
        lines = [
            self.make_line("k1", ProductRef(3), 2, "100.00"),
            self.make_line("k2", LotRef(4), 1, "500.00"),
        ]
        self.store.save(lines)
        self.assertEqual(self.store.load(), lines)
        stored = self.session["cart"]["lines"][0]
        self.assertEqual(stored["item"], {"type": "product", "id": 3})
        self.assertEqual(stored["unit_price"], "100.00")

    def test_token_is_stable_until_cleared(self):
        self.store.save([self.make_line("k1", ProductRef(1))])
        token = self.store.token
        self.assertEqual(self.store.token, token)
        self.assertEqual(self.store.device_key, token)
        self.store.clear()
        self.assertNotIn("cart", self.session)
        self.assertNotEqual(self.store.token, token)

    def test_device_key_falls_back_to_session_key(self):
        self.assertEqual(self.store.device_key, "abc123")

    def test_records_without_key_get_positional_ids(self):
        self.session["cart"] = {
            "lines": [
                {"item": {"type": "product", "id": 1}, "quantity": 1, "unit_price": "5"},
                {"item": {"type": "lot", "id": 2}, "quantity": 3, "unit_price": "7.50"},
            ]
        }
        lines = self.store.load()
        self.assertEqual([line.id for line in lines], ["0", "1"])
        self.assertEqual(lines[1].item, LotRef(2))
        self.assertEqual(lines[1].created_at, NOW)

    def test_unknown_fields_are_ignored(self):
        self.session["cart"] = {
            "token": "t",
            "version": 9,
            "lines": [
                {
                    "key": "k",
                    "item": {"type": "product", "id": 1, "sku": "X"},
                    "quantity": 2,
                    "unit_price": "3.00",
                    "gift_wrap": True,
                }
            ],
        }
        (line,) = self.store.load()
        self.assertEqual(line.item, ProductRef(1))
        self.assertEqual(line.quantity, 2)

    def test_malformed_records_are_dropped(self):
        self.session["cart"] = {
            "lines": [
                "garbage",
                {"item": {"type": "bundle", "id": 1}, "quantity": 1, "unit_price": "1"},
                {"item": {"type": "product", "id": 1}, "quantity": 0, "unit_price": "1"},
                {"item": {"type": "product", "id": 1}, "quantity": True, "unit_price": "1"},
                {"item": {"type": "product", "id": 1}, "quantity": 1, "unit_price": "abc"},
                {"item": {"type": "product", "id": 1}, "quantity": 1, "unit_price": "NaN"},
                {"item": {"type": "product", "id": 9}, "quantity": 1, "unit_price": "2.00"},
            ]
        }
        lines = self.store.load()
        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0].item, ProductRef(9))
        self.assertEqual(lines[0].id, "6")

    def test_non_list_lines_are_discarded(self):
        self.session["cart"] = {"lines": {"oops": 1}}
        self.assertEqual(self.store.load(), [])

    def test_timestamps_round_trip(self):
        line = self.make_line("k1", ProductRef(1))
        self.store.save([line])
        loaded = self.store.load()[0]
        self.assertEqual(loaded.created_at, NOW)
        self.assertEqual(loaded.updated_at, NOW)
