# tracker/models.py
import datetime
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .errors import InvalidTransition, ValidationError


class ItemStatus(str, Enum):
    AVAILABLE = "available"
    SOLD = "sold"


# Deletion is not a status; the row simply stops existing.
ALLOWED_TRANSITIONS = {
    ItemStatus.AVAILABLE: frozenset({ItemStatus.SOLD}),
    ItemStatus.SOLD: frozenset(),
}
REACHABLE_STATUSES = frozenset().union(*ALLOWED_TRANSITIONS.values())


@dataclass(frozen=True)
class Item:
    """
    One unit of inventory as stored in the remote ``items`` table.
    cost and price may be None when the row is partial; the aggregator
    reads them as zero.
    """
    id: Any
    name: str
    cost: Optional[float] = None
    price: Optional[float] = None
    status: ItemStatus = ItemStatus.AVAILABLE
    created_at: Optional[datetime.datetime] = None

    @property
    def is_sold(self) -> bool:
        return self.status == ItemStatus.SOLD

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Item":
        """Build an Item from a store row. Raises KeyError/ValueError on malformed rows."""
        return cls(
            id=row["id"],
            name=row.get("name") or "",
            cost=_optional_amount(row.get("cost")),
            price=_optional_amount(row.get("price")),
            status=ItemStatus(row.get("status") or ItemStatus.AVAILABLE.value),
            created_at=parse_timestamp(row.get("created_at")),
        )


@dataclass(frozen=True)
class Sale:
    """A completed sale. Not reconciled with Item.status; item_id is informational."""
    date: datetime.datetime
    sale_price: Optional[float] = None
    profit: Optional[float] = None
    fees: Optional[float] = None
    shipping_paid: Optional[float] = None
    item_id: Any = None


@dataclass(frozen=True)
class Expense:
    amount: float
    category: Optional[str] = None


@dataclass(frozen=True)
class DashboardMetrics:
    total_revenue: float = 0
    total_profit: float = 0
    items_sold: int = 0
    items_in_stock: int = 0


@dataclass(frozen=True)
class TaxReport:
    gross_receipts: float = 0
    cogs: float = 0
    platform_fees: float = 0
    shipping_costs: float = 0
    # Insertion order is first-seen category order
    expenses_by_category: Dict[str, float] = field(default_factory=dict)
    total_expenses: float = 0
    net_profit: float = 0

    @property
    def taxable_income(self) -> float:
        return self.gross_receipts - self.cogs


@dataclass(frozen=True)
class TrendPoint:
    label: str
    profit: float


def parse_timestamp(value) -> Optional[datetime.datetime]:
    if value is None or isinstance(value, datetime.datetime):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.datetime.fromisoformat(text)


def _optional_amount(value) -> Optional[float]:
    if value is None:
        return None
    return float(value)


def _required_amount(label: str, value) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number")
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number")
    if math.isnan(amount) or math.isinf(amount):
        raise ValidationError(f"{label} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{label} must be non-negative")
    return amount


def validate_new_item(name, cost, price) -> tuple[str, float, float]:
    """
    Check the fields of an item about to be created.
    Returns (name, cost, price) normalized; raises ValidationError.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Item name is required")
    return (
        name.strip(),
        _required_amount("cost", cost),
        _required_amount("price", price),
    )


def coerce_status(value) -> ItemStatus:
    try:
        return ItemStatus(value)
    except ValueError:
        raise ValidationError(f"Unknown item status: {value!r}")


def check_transition(item: Item, target) -> ItemStatus:
    """Return the target status if item may move to it, else raise InvalidTransition."""
    target = coerce_status(target)
    if target not in ALLOWED_TRANSITIONS[item.status]:
        raise InvalidTransition(item.id, item.status, target)
    return target


_UPDATABLE_FIELDS = ("name", "cost", "price", "status")


def validate_item_fields(fields: Dict[str, Any], item_id: Any = None) -> Dict[str, Any]:
    """
    Check a partial update. Returns the fields in wire form (status as its
    string value); raises ValidationError on an unknown or invalid field and
    InvalidTransition for a status no item can move into.
    """
    if not fields:
        raise ValidationError("No fields to update")
    unknown = sorted(set(fields) - set(_UPDATABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Cannot update field(s): {', '.join(unknown)}")

    out: Dict[str, Any] = {}
    if "name" in fields:
        name = fields["name"]
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Item name is required")
        out["name"] = name.strip()
    for key in ("cost", "price"):
        if key in fields:
            out[key] = _required_amount(key, fields[key])
    if "status" in fields:
        status = coerce_status(fields["status"])
        if status not in REACHABLE_STATUSES:
            raise InvalidTransition(item_id, None, status)
        out["status"] = status.value
    return out
