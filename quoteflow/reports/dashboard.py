"""Dashboard aggregation over every stored quote.

One pass computes the per-status counts and value sums, then the last six
calendar months (ending with the current one) are bucketed by issue date.
Quotes older than the window still count in the totals.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal

from quoteflow.models.enums import QuoteStatus
from quoteflow.schemas.dashboard import DashboardStats, MonthStats
from quoteflow.schemas.quote import Quote

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
HISTORY_MONTHS = 6


def last_months(now: datetime, count: int = HISTORY_MONTHS) -> list[MonthStats]:
    """Empty buckets for the ``count`` months ending at ``now``'s month, oldest first."""
    buckets: list[MonthStats] = []
    for offset in range(count - 1, -1, -1):
        absolute = now.year * 12 + (now.month - 1) - offset
        year, month_index = divmod(absolute, 12)
        buckets.append(
            MonthStats(
                label=f"{MONTH_NAMES[month_index]}/{year % 100:02d}",
                year=year,
                month_index=month_index,
            )
        )
    return buckets


def build_dashboard_stats(
    quotes: Iterable[Quote],
    client_count: int,
    now: datetime,
) -> DashboardStats:
    """Aggregate quotes into dashboard totals plus the six-month history.

    Args:
        quotes: Every stored quote.
        client_count: Unfiltered number of clients.
        now: Reference instant; its calendar month closes the window.
    """
    stats = DashboardStats(total_clients=client_count)
    by_month = last_months(now)
    index = {(bucket.year, bucket.month_index): bucket for bucket in by_month}

    for quote in quotes:
        value = quote.total_value or Decimal("0")
        accepted = quote.status == QuoteStatus.ACCEPTED

        stats.total += 1
        stats.total_value += value
        if quote.status == QuoteStatus.OPEN:
            stats.open += 1
        elif accepted:
            stats.accepted += 1
            stats.accepted_value += value
        elif quote.status == QuoteStatus.DECLINED:
            stats.declined += 1
        elif quote.status == QuoteStatus.EXPIRED:
            stats.expired += 1

        bucket = index.get((quote.issue_date.year, quote.issue_date.month - 1))
        if bucket is not None:
            bucket.count += 1
            bucket.value += value
            if accepted:
                bucket.accepted_count += 1

    stats.by_month = by_month
    return stats
