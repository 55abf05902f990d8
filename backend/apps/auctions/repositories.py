from apps.common.repository import GenericRepository
from .models import Lot


class LotRepository(GenericRepository[Lot]):
    def __init__(self):
        super().__init__(Lot)

    def get_active(self, lot_id: int):
        return self.get(id=lot_id, is_active=True)

    def get_many(self, ids, **filters):
        return self.list(id__in=list(ids), **filters).only(
            "id", "name", "unit", "image"
        )

    def existing_ids(self, ids) -> set:
        return set(self.list(id__in=list(ids)).values_list("id", flat=True))
