from decimal import Decimal

from django.test import TestCase

from apps.catalog.models import Product
from apps.catalog.repositories import ProductRepository


class ProductRepositoryTests(TestCase):
    def setUp(self):
        self.repo = ProductRepository()
        self.active = Product.objects.create(title="Mangoes", price=Decimal("30.00"))
        self.retired = Product.objects.create(
            title="Passion fruit", price=Decimal("15.00"), is_active=False
        )

    def test_get_active_skips_inactive_products(self):
        self.assertEqual(self.repo.get_active(self.active.id), self.active)
        self.assertIsNone(self.repo.get_active(self.retired.id))
        self.assertIsNone(self.repo.get_active(9999))

    def test_get_many_accepts_any_iterable(self):
        ids = (pid for pid in [self.active.id, self.retired.id])
        titles = sorted(p.title for p in self.repo.get_many(ids))
        self.assertEqual(titles, ["Mangoes", "Passion fruit"])

    def test_existing_ids_include_inactive_products(self):
        ids = self.repo.existing_ids([self.active.id, self.retired.id, 9999])
        self.assertEqual(ids, {self.active.id, self.retired.id})
