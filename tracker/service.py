# tracker/service.py
import datetime
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, Optional, Tuple, TypeVar

import pytz

from gateways import get_gateway
from gateways.base import ItemGateway

from .errors import InvalidTransition, TrackerError, ValidationError
from .logger import get_logger
from .metrics import (
    available_items,
    compute_dashboard_metrics,
    compute_tax_report,
    item_margin,
)
from .models import (
    DashboardMetrics,
    Expense,
    Item,
    ItemStatus,
    Sale,
    TaxReport,
    check_transition,
)
from .report import download_report

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class ViewState(Generic[T]):
    """
    Outcome of one view operation.

    data is the operation's result, items the fresh snapshot it was derived
    from (or re-fetched after a mutation). error holds at most one message
    for the user, cleared with dismiss_error().
    """
    data: Optional[T] = None
    items: Tuple[Item, ...] = ()
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def dismiss_error(self) -> None:
        self.error = None


class InventoryService:
    """
    Pull-based access to items and the metrics derived from them.

    Nothing is cached: every load reads a fresh snapshot from the gateway,
    and every mutation is followed by a re-fetch.
    """

    def __init__(self, gateway: Optional[ItemGateway] = None):
        self.gateway = gateway or get_gateway()

    def snapshot(self) -> Tuple[Item, ...]:
        return tuple(self.gateway.list_all())

    def _failed(self, message: str, exc: TrackerError, state: ViewState) -> ViewState:
        # Input problems are the user's to fix, so show them as-is
        if isinstance(exc, (ValidationError, InvalidTransition)):
            logger.warning("%s: %s", message, exc)
            state.error = str(exc)
        else:
            logger.exception("%s: %s", message, exc)
            state.error = message
        return state

    def _load(self, message: str, derive: Callable[[Tuple[Item, ...]], Any]) -> ViewState:
        state: ViewState = ViewState()
        try:
            state.items = self.snapshot()
            state.data = derive(state.items)
        except TrackerError as e:
            return self._failed(message, e, state)
        return state

    def _mutate(self, message: str, op: Callable[[], Any]) -> ViewState:
        state: ViewState = ViewState()
        try:
            state.data = op()
        except TrackerError as e:
            return self._failed(message, e, state)

        try:
            state.items = self.snapshot()
        except TrackerError as e:
            return self._failed("Failed to refresh inventory", e, state)
        return state

    def load_dashboard(self) -> ViewState[DashboardMetrics]:
        return self._load("Failed to load dashboard data", compute_dashboard_metrics)

    def load_inventory(self) -> ViewState[Tuple[Item, ...]]:
        """Items still for sale, newest first."""
        return self._load(
            "Failed to load inventory",
            lambda items: tuple(available_items(items)),
        )

    def load_tax_report(
        self,
        sales: Iterable[Sale],
        expenses: Iterable[Expense],
    ) -> ViewState[TaxReport]:
        return self._load(
            "Failed to load report data",
            lambda items: compute_tax_report(items, sales, expenses),
        )

    def export_tax_report(
        self,
        sales: Iterable[Sale],
        expenses: Iterable[Expense],
        directory=None,
    ):
        state = self.load_tax_report(sales, expenses)
        if not state.ok:
            return state
        try:
            state.data = download_report(state.data, directory)
        except OSError as e:
            logger.exception("Failed to write tax report: %s", e)
            state.data = None
            state.error = "Failed to download report"
        return state

    def add_item(
        self,
        name: str,
        purchase_price: float,
        selling_price: float,
        shipping_paid: float = 0,
    ) -> ViewState[Item]:
        """Create an available item; its cost is purchase price plus inbound shipping."""
        def op():
            try:
                cost = float(purchase_price) + float(shipping_paid)
            except (TypeError, ValueError):
                raise ValidationError("Purchase price and shipping must be numbers")
            return self.gateway.create(name, cost, selling_price)

        return self._mutate("Failed to add item to inventory", op)

    def update_item(self, item_id: Any, **fields) -> ViewState[Item]:
        def op():
            if "status" in fields:
                check_transition(self.gateway.get(item_id), fields["status"])
            return self.gateway.update(item_id, fields)

        return self._mutate("Failed to update item", op)

    def sell_item(
        self,
        item_id: Any,
        sale_price: Optional[float] = None,
        fees: float = 0,
        shipping_paid: float = 0,
        sold_at: Optional[datetime.datetime] = None,
    ) -> ViewState[Sale]:
        """
        Mark an available item sold and return the resulting Sale.
        A given sale_price replaces the item's listed price.
        """
        def op():
            item = self.gateway.get(item_id)
            check_transition(item, ItemStatus.SOLD)

            fields: dict = {"status": ItemStatus.SOLD}
            if sale_price is not None:
                fields["price"] = sale_price
            sold = self.gateway.update(item_id, fields)

            return Sale(
                date=sold_at or datetime.datetime.now(tz=pytz.UTC),
                sale_price=sold.price,
                profit=item_margin(sold) - fees - shipping_paid,
                fees=fees,
                shipping_paid=shipping_paid,
                item_id=sold.id,
            )

        return self._mutate("Failed to update item status", op)

    def delete_item(self, item_id: Any) -> ViewState[None]:
        return self._mutate("Failed to delete item", lambda: self.gateway.delete(item_id))
