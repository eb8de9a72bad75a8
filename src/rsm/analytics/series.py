from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Iterable, Optional

from rsm.analytics.windows import DAILY
from rsm.domain.models import Sale

DEFAULT_DATE_FORMAT = "%Y-%m-%d"


def _local(t: datetime, tz: Optional[tzinfo]) -> datetime:
    # naive timestamps are already local
    if t.tzinfo is None:
        return t
    return t.astimezone(tz)


def hourly_revenue(sales: Iterable[Sale], tz: Optional[tzinfo] = None) -> list[tuple[str, float]]:
    by_hour: dict[int, float] = {}
    for sale in sales:
        hour = _local(sale.created_at, tz).hour
        by_hour[hour] = by_hour.get(hour, 0.0) + float(sale.total)
    return [(f"{hour:02d}:00", by_hour[hour]) for hour in sorted(by_hour)]


def _bucket_in_order(sales: Iterable[Sale], fmt: str, tz: Optional[tzinfo]) -> list[tuple[str, float]]:
    # dicts keep first-insertion order
    buckets: dict[str, float] = {}
    for sale in sales:
        label = _local(sale.created_at, tz).strftime(fmt)
        buckets[label] = buckets.get(label, 0.0) + float(sale.total)
    return list(buckets.items())


def daily_revenue(
    sales: Iterable[Sale],
    date_format: str = DEFAULT_DATE_FORMAT,
    tz: Optional[tzinfo] = None,
) -> list[tuple[str, float]]:
    return _bucket_in_order(sales, date_format, tz)


def monthly_revenue(sales: Iterable[Sale], tz: Optional[tzinfo] = None) -> list[tuple[str, float]]:
    return _bucket_in_order(sales, "%B", tz)


def revenue_series(
    sales: Iterable[Sale],
    granularity: str,
    date_format: str = DEFAULT_DATE_FORMAT,
    tz: Optional[tzinfo] = None,
) -> list[tuple[str, float]]:
    """
    ``daily`` buckets by hour of day, ascending. Every other granularity
    buckets by calendar date in the order sales are encountered. Empty
    buckets are never emitted.

    Aware timestamps are read in ``tz`` (the system zone when omitted).
    """
    if granularity == DAILY:
        return hourly_revenue(sales, tz)
    return daily_revenue(sales, date_format, tz)
