"""
Earnings projection: compares the recent pace (trailing 7 days) with the
baseline pace (trailing 30 days) and extrapolates it forward.

    current_pace      = weekly.daily_average
    historical_pace   = monthly.daily_average
    variance (%)      = (current − historical) / historical × 100   (0 if no history)
    projected_daily   = current_pace
    projected_weekly  = current_pace × 7
    projected_monthly = current_pace × 30

Confidence depends only on how many gigs the worker has ever completed:
more than 50 → high, more than 20 → medium, otherwise low.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Sequence

from gig_planner.config import AnalyticsConfig
from gig_planner.engine.aggregator import aggregate_earnings
from gig_planner.models.analytics import EarningsProjection, EarningsSummary
from gig_planner.models.gig import Gig
from gig_planner.models.ledger import LedgerEntry
from gig_planner.taxonomy.gig_taxonomy import ForecastConfidence, GigStatus
from gig_planner.utils.time_utils import trailing_window, utcnow

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = AnalyticsConfig()


def project_earnings(
    weekly: EarningsSummary,
    monthly: EarningsSummary,
    lifetime_completed_count: int,
    config: AnalyticsConfig = _DEFAULT_CONFIG,
) -> EarningsProjection:
    """Build a projection from two precomputed window summaries.

    Args:
        weekly:                   Summary of the short (recent) window.
        monthly:                  Summary of the long (baseline) window.
        lifetime_completed_count: All gigs the worker has ever completed.
        config:                   Confidence thresholds.

    Returns:
        Frozen ``EarningsProjection``.
    """
    current_pace = weekly.daily_average
    historical_pace = monthly.daily_average

    if historical_pace != 0:
        variance = (current_pace - historical_pace) / historical_pace * 100.0
    else:
        logger.debug("No baseline pace; variance degrades to 0")
        variance = 0.0

    return EarningsProjection(
        current_pace=current_pace,
        historical_pace=historical_pace,
        projected_daily=current_pace,
        projected_weekly=current_pace * 7,
        projected_monthly=current_pace * 30,
        variance=variance,
        confidence=confidence_for_count(lifetime_completed_count, config),
    )


def confidence_for_count(
    completed_count: int,
    config: AnalyticsConfig = _DEFAULT_CONFIG,
) -> ForecastConfidence:
    """Map a lifetime completed-gig count onto a confidence label."""
    if completed_count > config.high_confidence_above:
        return ForecastConfidence.HIGH
    if completed_count > config.medium_confidence_above:
        return ForecastConfidence.MEDIUM
    return ForecastConfidence.LOW


def forecast_earnings(
    completed: Sequence[Gig],
    entries: Sequence[LedgerEntry],
    now: Optional[datetime] = None,
    lifetime_completed_count: Optional[int] = None,
    user_id: Optional[str] = None,
    config: AnalyticsConfig = _DEFAULT_CONFIG,
) -> EarningsProjection:
    """Aggregate the trailing windows ending ``now`` and project them.

    Args:
        completed: Completed gigs covering at least the long window.
        entries:   Ledger entries covering at least the long window.
        now:       End of both windows; defaults to the current time.
        lifetime_completed_count: Overrides the count derived from ``completed``
            when the caller holds a longer history than it passed in.
        user_id:   Optional user scope.
        config:    Window lengths and confidence thresholds.
    """
    now = now or utcnow()
    weekly_start, end = trailing_window(now, config.weekly_window_days)
    monthly_start, _ = trailing_window(now, config.monthly_window_days)

    weekly = aggregate_earnings(
        completed, entries, weekly_start, end, user_id=user_id, top_n=config.top_platforms
    )
    monthly = aggregate_earnings(
        completed, entries, monthly_start, end, user_id=user_id, top_n=config.top_platforms
    )

    if lifetime_completed_count is None:
        lifetime_completed_count = _count_completed(completed, user_id)

    return project_earnings(weekly, monthly, lifetime_completed_count, config)


def _count_completed(gigs: Iterable[Gig], user_id: Optional[str]) -> int:
    return sum(
        1 for gig in gigs
        if gig.status == GigStatus.COMPLETED and (user_id is None or gig.user_id == user_id)
    )
