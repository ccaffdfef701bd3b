"""
Earnings aggregation over completed gigs and ledger entries.

``aggregate_earnings()`` produces an ``EarningsSummary`` for an inclusive
``[start, end]`` window:

    total_earnings      = Σ gig total pay + Σ ledger earnings
    total_expenses      = Σ ledger expenses
    net_income          = total_earnings − total_expenses
    total_hours_worked  = Σ estimated_duration / 60
    total_miles         = Σ travel_distance
    average_hourly_rate = net_income / total_hours_worked   (0 if no hours)
    earnings_per_mile   = total_earnings / total_miles      (0 if no miles)
    daily_average       = net_income / max(1, days in window)
    weekly_projection   = daily_average × 7
    monthly_projection  = daily_average × 30

Only gigs with status ``completed`` whose completion time falls in the
window are counted, and only ledger entries whose transaction date does.
Every ratio guards its denominator, so empty inputs give an all-zero summary.

Fetching the collections is the caller's job; nothing here does I/O.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime
from typing import Iterable, Optional

from gig_planner.errors import InvalidRange
from gig_planner.models.analytics import EarningsSummary, PeriodEarnings, PlatformEarnings
from gig_planner.models.gig import Gig
from gig_planner.models.ledger import LedgerEntry
from gig_planner.taxonomy.gig_taxonomy import BreakdownPeriod, GigStatus, LedgerEntryType
from gig_planner.utils.time_utils import days_between, ensure_utc, period_key

logger = logging.getLogger(__name__)

DEFAULT_TOP_PLATFORMS = 5


def aggregate_earnings(
    completed: Iterable[Gig],
    entries: Iterable[LedgerEntry],
    start: datetime,
    end: datetime,
    user_id: Optional[str] = None,
    top_n: int = DEFAULT_TOP_PLATFORMS,
) -> EarningsSummary:
    """Summarise earnings for one window.

    Args:
        completed: Completed gigs (others are ignored).
        entries:   Ledger entries.
        start:     Inclusive window start.
        end:       Inclusive window end.
        user_id:   When given, records owned by other users are ignored.
        top_n:     Number of platforms to keep in ``top_platforms``.

    Returns:
        Frozen ``EarningsSummary``.

    Raises:
        InvalidRange: If ``start > end``.
    """
    start, end = ensure_utc(start), ensure_utc(end)
    if start > end:
        raise InvalidRange(f"start ({start.isoformat()}) must be <= end ({end.isoformat()}).")

    total_earnings = 0.0
    total_expenses = 0.0
    total_hours = 0.0
    total_miles = 0.0
    completed_count = 0
    by_platform: dict[str, list[float]] = defaultdict(lambda: [0.0, 0])

    for gig in _completed_in_window(completed, start, end, user_id):
        pay = gig.total_pay
        total_earnings += pay
        total_hours += gig.estimated_duration / 60.0
        total_miles += gig.travel_distance or 0.0
        completed_count += 1
        bucket = by_platform[gig.source_id]
        bucket[0] += pay
        bucket[1] += 1

    for entry in entries:
        if user_id is not None and entry.user_id != user_id:
            continue
        if not start <= entry.transaction_date <= end:
            continue
        if entry.entry_type == LedgerEntryType.EXPENSE:
            total_expenses += entry.amount
        elif entry.entry_type == LedgerEntryType.EARNING:
            total_earnings += entry.amount

    net_income = total_earnings - total_expenses
    average_hourly_rate = net_income / total_hours if total_hours > 0 else 0.0
    earnings_per_mile = total_earnings / total_miles if total_miles > 0 else 0.0
    daily_average = net_income / max(1.0, days_between(start, end))

    top_platforms = tuple(
        PlatformEarnings(platform=name, earnings=earned, count=int(count))
        for name, (earned, count) in sorted(
            by_platform.items(), key=lambda item: (-item[1][0], item[0])
        )[:top_n]
    )

    logger.debug(
        "Aggregated %d completed gigs for user=%s between %s and %s",
        completed_count, user_id, start.isoformat(), end.isoformat(),
    )

    return EarningsSummary(
        user_id=user_id,
        start=start,
        end=end,
        total_earnings=total_earnings,
        total_expenses=total_expenses,
        net_income=net_income,
        total_hours_worked=total_hours,
        total_miles=total_miles,
        average_hourly_rate=average_hourly_rate,
        earnings_per_mile=earnings_per_mile,
        daily_average=daily_average,
        weekly_projection=daily_average * 7,
        monthly_projection=daily_average * 30,
        completed_count=completed_count,
        top_platforms=top_platforms,
    )


def earnings_breakdown(
    completed: Iterable[Gig],
    group_by: BreakdownPeriod | str = BreakdownPeriod.DAY,
    user_id: Optional[str] = None,
) -> list[PeriodEarnings]:
    """Group completed-gig earnings by day, week (Sunday start) or month.

    Returns:
        One ``PeriodEarnings`` per non-empty bucket, sorted by period key.

    Raises:
        ValueError: If ``group_by`` is not a ``BreakdownPeriod`` value.
    """
    period = BreakdownPeriod(group_by)
    buckets: dict[str, list[float]] = defaultdict(lambda: [0.0, 0])

    for gig in completed:
        if gig.status != GigStatus.COMPLETED:
            continue
        if user_id is not None and gig.user_id != user_id:
            continue
        bucket = buckets[period_key(gig.completion_time, period.value)]
        bucket[0] += gig.total_pay
        bucket[1] += 1

    return [
        PeriodEarnings(period=key, earnings=earned, gigs=int(count))
        for key, (earned, count) in sorted(buckets.items())
    ]


def _completed_in_window(
    gigs: Iterable[Gig],
    start: datetime,
    end: datetime,
    user_id: Optional[str],
) -> Iterable[Gig]:
    for gig in gigs:
        if gig.status != GigStatus.COMPLETED:
            continue
        if user_id is not None and gig.user_id != user_id:
            continue
        if start <= gig.completion_time <= end:
            yield gig
