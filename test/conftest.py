import sys
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def make_product(id="p1", name="Cola", category="beverages", cost=2.0, price=5.0, qty=10, min_stock=5, unit="unit"):
    from rsm.domain.models import Product

    return Product(
        id=id,
        name=name,
        category=category,
        cost_price=cost,
        selling_price=price,
        quantity=qty,
        min_stock_level=min_stock,
        unit=unit,
    )


def make_sale(created_at: datetime, items=(), total=None, id="s1", payment_method="cash"):
    """items: [(product_id, quantity, price_at_sale)]"""
    from rsm.domain.models import Sale, SaleItem

    lines = tuple(SaleItem(product_id=pid, quantity=q, price_at_sale=p) for pid, q, p in items)
    if total is None:
        total = sum(line.line_total for line in lines)
    return Sale(id=id, total=total, payment_method=payment_method, created_at=created_at, items=lines)
