"""
Metrics aggregation over item snapshots.

Every function here is pure: it reads the snapshot it is given and returns a
new value. Missing numeric fields (None) count as zero instead of failing, so
a partial row from the store still aggregates.
"""

from typing import Dict, Iterable, List, Sequence

from .models import (
    DashboardMetrics,
    Expense,
    Item,
    ItemStatus,
    Sale,
    TaxReport,
    TrendPoint,
)


def _n(value) -> float:
    return 0 if value is None else value


def sold_items(items: Iterable[Item]) -> List[Item]:
    return [it for it in items if it.status == ItemStatus.SOLD]


def available_items(items: Iterable[Item]) -> List[Item]:
    return [it for it in items if it.status == ItemStatus.AVAILABLE]


def item_margin(item: Item) -> float:
    """Profit the item makes (or made) at its listed price."""
    return _n(item.price) - _n(item.cost)


def compute_dashboard_metrics(items: Iterable[Item]) -> DashboardMetrics:
    items = list(items)
    sold = sold_items(items)

    return DashboardMetrics(
        total_revenue=sum(_n(it.price) for it in sold),
        total_profit=sum(item_margin(it) for it in sold),
        items_sold=len(sold),
        items_in_stock=len(available_items(items)),
    )


def expenses_by_category(expenses: Iterable[Expense]) -> Dict[str, float]:
    """
    Sum expense amounts per category, keeping first-seen category order.
    Uncategorised expenses are left out.
    """
    out: Dict[str, float] = {}
    for exp in expenses:
        if exp.category:
            out[exp.category] = out.get(exp.category, 0) + _n(exp.amount)
    return out


def compute_tax_report(
    items: Iterable[Item],
    sales: Iterable[Sale],
    expenses: Iterable[Expense],
) -> TaxReport:
    sold = sold_items(items)
    sales = list(sales)
    expenses = list(expenses)

    gross_receipts = sum(_n(it.price) for it in sold)
    cogs = sum(_n(it.cost) for it in sold)
    platform_fees = sum(_n(s.fees) for s in sales)
    shipping_costs = sum(_n(s.shipping_paid) for s in sales)
    total_expenses = sum(_n(e.amount) for e in expenses)

    return TaxReport(
        gross_receipts=gross_receipts,
        cogs=cogs,
        platform_fees=platform_fees,
        shipping_costs=shipping_costs,
        expenses_by_category=expenses_by_category(expenses),
        total_expenses=total_expenses,
        net_profit=gross_receipts - cogs - platform_fees - shipping_costs - total_expenses,
    )


def profit_trend(sales: Sequence[Sale], limit: int = 7) -> List[TrendPoint]:
    """Profit of the last `limit` sales, labelled like "Oct 17"."""
    if limit <= 0:
        return []
    return [
        TrendPoint(
            label=f"{s.date.strftime('%b')} {s.date.day}",
            profit=_n(s.profit),
        )
        for s in list(sales)[-limit:]
    ]


def recent_sales(sales: Sequence[Sale], limit: int = 5) -> List[Sale]:
    return list(sales)[:max(0, limit)]
