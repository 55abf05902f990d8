from typing import Iterable, List

from .dtos import CartLineDTO
from .models import CartLine


class CartLineMapper:
    def to_dto(self, line: CartLine) -> CartLineDTO:
        return CartLineDTO(
            id=str(line.id),
            owner_id=line.owner_id,
            item=line.item,
            quantity=line.quantity,
            unit_price=line.unit_price,
            created_at=line.created_at,
            updated_at=line.updated_at,
        )

    def many_to_dto(self, lines: Iterable[CartLine]) -> List[CartLineDTO]:
        return [self.to_dto(line) for line in lines]
