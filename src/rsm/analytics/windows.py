from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Iterable

from rsm.domain.models import Sale

DAILY = "daily"
WEEKLY = "weekly"
MONTHLY = "monthly"
YEARLY = "yearly"
ALL = "all"

WINDOWS = (DAILY, WEEKLY, MONTHLY, YEARLY, ALL)


def align(t: datetime, now: datetime) -> datetime:
    """Express ``t`` in the clock of ``now`` so calendar fields compare."""
    if now.tzinfo is None:
        if t.tzinfo is None:
            return t
        return t.astimezone().replace(tzinfo=None)
    if t.tzinfo is None:
        return t.replace(tzinfo=now.tzinfo)
    return t.astimezone(now.tzinfo)


def _instant(t: datetime) -> datetime:
    # naive values are read as system local time
    return t.astimezone(timezone.utc)


def in_window(t: datetime, window: str, now: datetime) -> bool:
    """Unknown windows behave like ``all``."""
    t = align(t, now)
    if window == DAILY:
        return t.date() == now.date()
    if window == WEEKLY:
        # elapsed time, not wall-clock difference
        return _instant(t) >= _instant(now) - timedelta(days=7)
    if window == MONTHLY:
        return (t.year, t.month) == (now.year, now.month)
    if window == YEARLY:
        return t.year == now.year
    return True


def filter_sales(sales: Iterable[Sale], window: str, now: datetime) -> list[Sale]:
    return [s for s in sales if in_window(s.created_at, window, now)]
