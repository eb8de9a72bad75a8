from __future__ import annotations

from datetime import datetime
from typing import Iterable, Sequence

from rsm.analytics.windows import align
from rsm.domain.models import (
    IN_STOCK,
    LOW_STOCK,
    OUT_OF_STOCK,
    Product,
    ProductSales,
    Sale,
)

STOCK_STATUS_RANK = {OUT_OF_STOCK: 0, LOW_STOCK: 1, IN_STOCK: 2}


def catalog_index(products: Iterable[Product]) -> dict[str, Product]:
    return {p.id: p for p in products}


def total_revenue(sales: Iterable[Sale]) -> float:
    return sum((float(s.total) for s in sales), 0.0)


def transaction_count(sales: Sequence[Sale]) -> int:
    return len(sales)


def net_profit(sales: Iterable[Sale], products: Iterable[Product]) -> float:
    """Margin over the current catalog; items whose product is gone count as 0."""
    by_id = catalog_index(products)
    profit = 0.0
    for sale in sales:
        for item in sale.items:
            product = by_id.get(item.product_id)
            if product is None:
                continue
            profit += (float(item.price_at_sale) - float(product.cost_price)) * int(item.quantity)
    return profit


def is_low_stock(product: Product) -> bool:
    return int(product.quantity) <= int(product.min_stock_level)


def low_stock_count(products: Iterable[Product]) -> int:
    return sum(1 for p in products if is_low_stock(p))


def stock_status(product: Product) -> str:
    qty = int(product.quantity)
    if qty == 0:
        return OUT_OF_STOCK
    if qty <= int(product.min_stock_level):
        return LOW_STOCK
    return IN_STOCK


def stock_status_rank(status: str) -> int:
    return STOCK_STATUS_RANK[status]


def _previous_month(year: int, month: int) -> tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def month_over_month_growth(sales: Iterable[Sale], now: datetime) -> float:
    """
    Revenue change of the calendar month of ``now`` against the month before,
    as a percentage. Returns 0.0 when the previous month had no revenue.
    """
    current_key = (now.year, now.month)
    previous_key = _previous_month(now.year, now.month)

    current = 0.0
    previous = 0.0
    for sale in sales:
        t = align(sale.created_at, now)
        key = (t.year, t.month)
        if key == current_key:
            current += float(sale.total)
        elif key == previous_key:
            previous += float(sale.total)

    if not previous:
        return 0.0
    return (current - previous) * 100 / previous


def top_products(sales: Iterable[Sale], products: Iterable[Product], limit: int = 5) -> list[ProductSales]:
    by_id = catalog_index(products)
    units: dict[str, int] = {}
    revenue: dict[str, float] = {}
    for sale in sales:
        for item in sale.items:
            if item.product_id not in by_id:
                continue
            units[item.product_id] = units.get(item.product_id, 0) + int(item.quantity)
            revenue[item.product_id] = revenue.get(item.product_id, 0.0) + float(item.price_at_sale) * int(item.quantity)

    rows = [
        ProductSales(product_id=pid, name=by_id[pid].name, quantity=units[pid], revenue=revenue[pid])
        for pid in revenue
    ]
    rows.sort(key=lambda r: (-r.revenue, r.name))
    return rows[: max(int(limit), 0)]
