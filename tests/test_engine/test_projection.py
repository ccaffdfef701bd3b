"""
Tests for gig_planner/engine/projection.py.

What we test
------------
project_earnings():
  - No baseline (historical pace 0) → variance 0, no division error.
  - Variance is the signed percent change of current vs historical pace.
  - Projections are current pace × 1 / 7 / 30.

confidence_for_count():
  - Strictly-greater thresholds: 50 → medium, 51 → high, 20 → low, 21 → medium.

forecast_earnings():
  - Uses trailing 7- and 30-day windows ending at ``now``.
  - lifetime count defaults to completed gigs passed in, and can be overridden.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from gig_planner.config import AnalyticsConfig
from gig_planner.engine.projection import (
    confidence_for_count,
    forecast_earnings,
    project_earnings,
)
from gig_planner.models.analytics import EarningsSummary
from gig_planner.models.gig import Gig
from gig_planner.taxonomy.gig_taxonomy import ForecastConfidence, GigStatus

NOW = datetime(2025, 6, 30, 12, 0, 0, tzinfo=timezone.utc)


# ── Helpers ────────────────────────────────────────────────────────────────────

def _summary(daily_average: float) -> EarningsSummary:
    return EarningsSummary(start=NOW - timedelta(days=7), end=NOW, daily_average=daily_average)


def _done(gig_id: str, days_ago: float, pay: float) -> Gig:
    completed = NOW - timedelta(days=days_ago)
    return Gig(
        gig_id=gig_id,
        user_id="user-1",
        source_id="instacart",
        title=f"Gig {gig_id}",
        pay_base=pay,
        location="Suburbs",
        estimated_duration=60,
        due_date=completed,
        status=GigStatus.COMPLETED,
        completed_at=completed,
        updated_at=completed,
    )


# ── project_earnings ──────────────────────────────────────────────────────────

class TestProjectEarnings:
    def test_no_history_variance_is_zero(self):
        projection = project_earnings(_summary(25.0), _summary(0.0), 3)
        assert projection.variance == 0.0
        assert projection.current_pace == 25.0
        assert projection.historical_pace == 0.0

    def test_variance_percent(self):
        projection = project_earnings(_summary(30.0), _summary(20.0), 0)
        assert projection.variance == pytest.approx(50.0)

    def test_negative_variance(self):
        projection = project_earnings(_summary(15.0), _summary(20.0), 0)
        assert projection.variance == pytest.approx(-25.0)

    def test_projections(self):
        projection = project_earnings(_summary(12.0), _summary(10.0), 0)
        assert projection.projected_daily == 12.0
        assert projection.projected_weekly == pytest.approx(84.0)
        assert projection.projected_monthly == pytest.approx(360.0)

    def test_all_zero(self):
        projection = project_earnings(_summary(0.0), _summary(0.0), 0)
        assert projection.projected_monthly == 0.0
        assert projection.variance == 0.0
        assert projection.confidence == ForecastConfidence.LOW


class TestConfidence:
    @pytest.mark.parametrize(
        "count, expected",
        [
            (0, ForecastConfidence.LOW),
            (20, ForecastConfidence.LOW),
            (21, ForecastConfidence.MEDIUM),
            (50, ForecastConfidence.MEDIUM),
            (51, ForecastConfidence.HIGH),
            (500, ForecastConfidence.HIGH),
        ],
    )
    def test_thresholds(self, count, expected):
        assert confidence_for_count(count) == expected

    def test_configurable(self):
        config = AnalyticsConfig(high_confidence_above=5, medium_confidence_above=2)
        assert confidence_for_count(6, config) == ForecastConfidence.HIGH
        assert confidence_for_count(3, config) == ForecastConfidence.MEDIUM


# ── forecast_earnings ─────────────────────────────────────────────────────────

class TestForecastEarnings:
    def test_recent_pace_vs_baseline(self):
        gigs = [
            _done("recent", 2, 70.0),     # in both windows
            _done("older", 20, 230.0),    # 30-day window only
            _done("ancient", 45, 999.0),  # neither
        ]
        projection = forecast_earnings(gigs, [], now=NOW)
        assert projection.current_pace == pytest.approx(10.0)       # 70 / 7
        assert projection.historical_pace == pytest.approx(10.0)    # 300 / 30
        assert projection.variance == pytest.approx(0.0)

    def test_lifetime_count_defaults_to_completed_passed(self):
        gigs = [_done(str(i), 1, 10.0) for i in range(22)]
        assert forecast_earnings(gigs, [], now=NOW).confidence == ForecastConfidence.MEDIUM

    def test_lifetime_count_override(self):
        projection = forecast_earnings([], [], now=NOW, lifetime_completed_count=100)
        assert projection.confidence == ForecastConfidence.HIGH
        assert projection.variance == 0.0
