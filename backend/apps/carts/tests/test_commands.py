import unittest

from apps.carts.commands import AddItemCommand, QuantityUpdateCommand
from apps.carts.errors import InvalidItemReference, InvalidQuantity
from apps.carts.items import LotRef, ProductRef


class AddItemCommandTests(unittest.TestCase):
    def test_product_with_default_quantity(self):
        cmd = AddItemCommand.from_raw({"productId": 5})
        self.assertEqual(cmd.item, ProductRef(5))
        self.assertEqual(cmd.quantity, 1)

    def test_lot_with_quantity(self):
        cmd = AddItemCommand.from_raw({"lotId": "8", "quantity": "3"})
        self.assertEqual(cmd.item, LotRef(8))
        self.assertEqual(cmd.quantity, 3)

    def test_snake_case_keys(self):
        cmd = AddItemCommand.from_raw({"product_id": 2, "quantity": 2})
        self.assertEqual(cmd.item, ProductRef(2))

    def test_both_or_neither_reference_rejected(self):
        for payload in ({}, {"productId": 1, "lotId": 2}, {"quantity": 1}):
            with self.subTest(payload=payload):
                with self.assertRaises(InvalidItemReference) as ctx:
                    AddItemCommand.from_raw(payload)
                self.assertEqual(ctx.exception.code, "VALIDATION_ERROR")

    def test_bad_ids_rejected(self):
        for raw_id in ("abc", 0, -3, True, 1.5):
            with self.subTest(raw_id=raw_id):
                with self.assertRaises(InvalidItemReference):
                    AddItemCommand.from_raw({"productId": raw_id})

    def test_bad_quantities_rejected(self):
        for quantity in (0, -1, "x", None, False):
            with self.subTest(quantity=quantity):
                with self.assertRaises(InvalidQuantity) as ctx:
                    AddItemCommand.from_raw({"lotId": 1, "quantity": quantity})
                self.assertEqual(ctx.exception.code, "INVALID_QUANTITY")

    def test_non_dict_payload_rejected(self):
        with self.assertRaises(InvalidItemReference):
            AddItemCommand.from_raw(["productId", 1])


class QuantityUpdateCommandTests(unittest.TestCase):
    def test_accepts_zero_and_negative(self):
        self.assertEqual(QuantityUpdateCommand.from_raw(4, {"quantity": 0}).quantity, 0)
        self.assertEqual(QuantityUpdateCommand.from_raw(4, {"quantity": "-5"}).quantity, -5)

    def test_line_id_is_text(self):
        self.assertEqual(QuantityUpdateCommand.from_raw(4, {"quantity": 2}).line_id, "4")

    def test_missing_quantity_rejected(self):
        with self.assertRaises(InvalidQuantity):
            QuantityUpdateCommand.from_raw("k", {})

    def test_malformed_quantity_rejected(self):
        for quantity in ("two", 2.5, None, True):
            with self.subTest(quantity=quantity):
                with self.assertRaises(InvalidQuantity):
                    QuantityUpdateCommand.from_raw("k", {"quantity": quantity})
