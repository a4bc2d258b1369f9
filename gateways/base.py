# gateways/base.py
from typing import Any, Dict, List

from tracker.models import Item, ItemStatus


class ItemGateway:
    """
    Boundary to the remote item store; the single source of truth for items.

    Every operation either returns its result or raises StoreError (NotFound
    for a missing update/delete target, ValidationError for bad input before
    anything is sent). Reads return items newest created_at first.
    """

    name = "base"

    def list_all(self) -> List[Item]:
        raise NotImplementedError

    def list_by_status(self, status: ItemStatus | str) -> List[Item]:
        raise NotImplementedError

    def get(self, item_id: Any) -> Item:
        raise NotImplementedError

    def create(self, name: str, cost: float, price: float) -> Item:
        raise NotImplementedError

    def update(self, item_id: Any, fields: Dict[str, Any]) -> Item:
        raise NotImplementedError

    def delete(self, item_id: Any) -> None:
        raise NotImplementedError
