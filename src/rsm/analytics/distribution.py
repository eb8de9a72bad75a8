from __future__ import annotations

from typing import Callable, Iterable

from rsm.analytics.aggregates import catalog_index
from rsm.domain.models import Product, Sale, Share

OTHERS_LABEL = "Others"


def _accumulate(
    sales: Iterable[Sale],
    products: Iterable[Product],
    key: Callable[[Product], str],
) -> dict[str, float]:
    by_id = catalog_index(products)
    acc: dict[str, float] = {}
    for sale in sales:
        for item in sale.items:
            product = by_id.get(item.product_id)
            if product is None:
                continue
            k = key(product)
            acc[k] = acc.get(k, 0.0) + float(item.price_at_sale) * int(item.quantity)
    return acc


def _share(label: str, value: float, total: float) -> Share:
    return Share(label=label, value=value, percentage=100 * value / total)


def category_distribution(sales: Iterable[Sale], products: Iterable[Product]) -> list[Share]:
    """Line-item revenue per product category; empty when nothing resolves."""
    acc = _accumulate(sales, products, lambda p: p.category)
    total = sum(acc.values())
    if not total:
        return []
    return [_share(label, value, total) for label, value in acc.items()]


def top_contribution(
    sales: Iterable[Sale],
    products: Iterable[Product],
    n: int = 5,
) -> list[Share]:
    """
    Revenue share of the ``n`` best-selling product names plus one ``Others``
    share for everything else.

    Ties on value are broken by name ascending. The ``Others`` value is summed
    from the raw accumulation, never from the rounded percentages.
    """
    acc = _accumulate(sales, products, lambda p: p.name)
    total = sum(acc.values())
    if not total:
        return []

    n = max(int(n), 0)
    ranked = sorted(acc.items(), key=lambda kv: (-kv[1], kv[0]))
    top = ranked[:n]
    top_labels = {label for label, _ in top}
    others = sum((value for label, value in acc.items() if label not in top_labels), 0.0)

    out = [_share(label, value, total) for label, value in top]
    out.append(_share(OTHERS_LABEL, others, total))
    return out
