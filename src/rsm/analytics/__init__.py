from .windows import filter_sales, in_window
from .aggregates import (
    low_stock_count,
    month_over_month_growth,
    net_profit,
    stock_status,
    top_products,
    total_revenue,
    transaction_count,
)
from .series import monthly_revenue, revenue_series
from .distribution import category_distribution, top_contribution

__all__ = [
    "filter_sales",
    "in_window",
    "low_stock_count",
    "month_over_month_growth",
    "net_profit",
    "stock_status",
    "top_products",
    "total_revenue",
    "transaction_count",
    "monthly_revenue",
    "revenue_series",
    "category_distribution",
    "top_contribution",
]
