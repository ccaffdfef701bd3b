"""
Analytics value objects returned by the earnings aggregator and the
projection engine. All frozen: they are snapshots of a computation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from gig_planner.taxonomy.gig_taxonomy import ForecastConfidence


class PlatformEarnings(BaseModel):
    """Gross earnings and gig count for one source platform."""

    model_config = ConfigDict(frozen=True)

    platform: str
    earnings: float
    count: int


class EarningsSummary(BaseModel):
    """Summary economics for one user over an inclusive time window.

    Attributes:
        user_id: Scope of the summary, or ``None`` when unscoped.
        start / end: Inclusive window bounds.
        total_earnings: Completed-gig pay plus ledger earnings.
        total_expenses: Ledger expenses.
        net_income: ``total_earnings - total_expenses``.
        total_hours_worked: Sum of completed-gig durations in hours.
        total_miles: Sum of completed-gig travel distance.
        average_hourly_rate: ``net_income / total_hours_worked`` (0 if no hours).
        earnings_per_mile: ``total_earnings / total_miles`` (0 if no miles).
        daily_average: ``net_income / max(1, days in window)``.
        weekly_projection / monthly_projection: ``daily_average`` × 7 / × 30.
        completed_count: Number of completed gigs counted.
        top_platforms: Up to N platforms ordered by earnings descending.
    """

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    start: datetime
    end: datetime
    total_earnings: float = 0.0
    total_expenses: float = 0.0
    net_income: float = 0.0
    total_hours_worked: float = 0.0
    total_miles: float = 0.0
    average_hourly_rate: float = 0.0
    earnings_per_mile: float = 0.0
    daily_average: float = 0.0
    weekly_projection: float = 0.0
    monthly_projection: float = 0.0
    completed_count: int = 0
    top_platforms: tuple[PlatformEarnings, ...] = ()


class EarningsProjection(BaseModel):
    """Near-term earnings forecast derived from recent versus baseline pace."""

    model_config = ConfigDict(frozen=True)

    current_pace: float
    historical_pace: float
    projected_daily: float
    projected_weekly: float
    projected_monthly: float
    variance: float
    confidence: ForecastConfidence


class PeriodEarnings(BaseModel):
    """Gross completed-gig earnings inside one day/week/month bucket."""

    model_config = ConfigDict(frozen=True)

    period: str
    earnings: float
    gigs: int


class ScheduleEarnings(BaseModel):
    """Expected economics of performing a chosen set of gigs."""

    model_config = ConfigDict(frozen=True)

    total_earnings: float
    total_minutes: int
    travel_costs: float
    net_earnings: float
    hourly_rate: float
