from apps.common.repository import GenericRepository
from .models import Product


class ProductRepository(GenericRepository[Product]):
    def __init__(self):
        super().__init__(Product)

    def get_active(self, product_id: int):
        return self.get(id=product_id, is_active=True)

    def get_many(self, ids, **filters):
        return self.list(id__in=list(ids), **filters).only(
            "id", "title", "unit", "image"
        )

    def existing_ids(self, ids) -> set:
        return set(self.list(id__in=list(ids)).values_list("id", flat=True))
