"""
Tests for gig_planner/engine/aggregator.py.

What we test
------------
aggregate_earnings():
  - Empty inputs → all-zero summary, no exception.
  - start > end → InvalidRange; start == end is allowed.
  - net_income == total_earnings - total_expenses exactly.
  - Gig pay and ledger earnings both count toward total_earnings.
  - Hours, miles, hourly rate, per-mile rate, daily average and projections.
  - Window bounds are inclusive; records outside the window are ignored.
  - Only completed gigs count; completion falls back to updated_at.
  - user_id scoping.
  - top_platforms sorted by earnings desc, capped at top_n.

earnings_breakdown():
  - day / week (Sunday start) / month keys, sorted ascending.
  - Unknown group_by → ValueError.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from gig_planner.engine.aggregator import aggregate_earnings, earnings_breakdown
from gig_planner.errors import InvalidRange
from gig_planner.models.gig import Gig
from gig_planner.models.ledger import LedgerEntry
from gig_planner.taxonomy.gig_taxonomy import GigStatus, LedgerEntryType

START = datetime(2025, 6, 1, 0, 0, 0, tzinfo=timezone.utc)   # Sunday
END = datetime(2025, 6, 8, 0, 0, 0, tzinfo=timezone.utc)     # 7 days later


# ── Helpers ────────────────────────────────────────────────────────────────────

def _done(
    gig_id: str,
    completed_at: datetime | None,
    pay_base: float = 30.0,
    tip_expected: float = 0.0,
    minutes: int = 60,
    miles: float | None = None,
    source_id: str = "doordash",
    user_id: str = "user-1",
    status: GigStatus = GigStatus.COMPLETED,
    updated_at: datetime | None = None,
) -> Gig:
    return Gig(
        gig_id=gig_id,
        user_id=user_id,
        source_id=source_id,
        title=f"Gig {gig_id}",
        pay_base=pay_base,
        tip_expected=tip_expected,
        location="Uptown",
        estimated_duration=minutes,
        travel_distance=miles,
        due_date=START,
        status=status,
        completed_at=completed_at,
        updated_at=updated_at or START,
    )


def _entry(
    entry_type: LedgerEntryType,
    amount: float,
    when: datetime,
    user_id: str = "user-1",
) -> LedgerEntry:
    return LedgerEntry(
        user_id=user_id,
        entry_type=entry_type,
        category="payment" if entry_type == LedgerEntryType.EARNING else "fuel",
        amount=amount,
        transaction_date=when,
    )


# ── Degenerate inputs ─────────────────────────────────────────────────────────

class TestEmptyInputs:
    def test_all_zero(self):
        summary = aggregate_earnings([], [], START, END)
        assert summary.total_earnings == 0.0
        assert summary.total_expenses == 0.0
        assert summary.net_income == 0.0
        assert summary.total_hours_worked == 0.0
        assert summary.total_miles == 0.0
        assert summary.average_hourly_rate == 0.0
        assert summary.earnings_per_mile == 0.0
        assert summary.daily_average == 0.0
        assert summary.weekly_projection == 0.0
        assert summary.monthly_projection == 0.0
        assert summary.completed_count == 0
        assert summary.top_platforms == ()

    def test_zero_length_window(self):
        summary = aggregate_earnings([], [], START, START)
        assert summary.daily_average == 0.0


class TestRangeValidation:
    def test_start_after_end_raises(self):
        with pytest.raises(InvalidRange) as exc_info:
            aggregate_earnings([], [], END, START)
        assert exc_info.value.kind == "invalid_range"

    def test_equal_bounds_allowed(self):
        aggregate_earnings([], [], START, START)


# ── Totals ────────────────────────────────────────────────────────────────────

class TestTotals:
    def _summary(self):
        gigs = [
            _done("a", START + timedelta(days=1), pay_base=40.0, tip_expected=5.0,
                  minutes=90, miles=10.0),
            _done("b", START + timedelta(days=2), pay_base=15.0, minutes=30, miles=5.0),
        ]
        entries = [
            _entry(LedgerEntryType.EARNING, 20.0, START + timedelta(days=3)),
            _entry(LedgerEntryType.EXPENSE, 12.5, START + timedelta(days=3)),
        ]
        return aggregate_earnings(gigs, entries, START, END)

    def test_earnings_include_gigs_and_ledger(self):
        assert self._summary().total_earnings == pytest.approx(80.0)

    def test_expenses(self):
        assert self._summary().total_expenses == pytest.approx(12.5)

    def test_net_income_identity(self):
        summary = self._summary()
        assert summary.net_income == summary.total_earnings - summary.total_expenses

    def test_hours_and_miles(self):
        summary = self._summary()
        assert summary.total_hours_worked == pytest.approx(2.0)
        assert summary.total_miles == pytest.approx(15.0)
        assert summary.completed_count == 2

    def test_rates(self):
        summary = self._summary()
        assert summary.average_hourly_rate == pytest.approx(67.5 / 2.0)
        assert summary.earnings_per_mile == pytest.approx(80.0 / 15.0)

    def test_daily_average_and_projections(self):
        summary = self._summary()
        assert summary.daily_average == pytest.approx(67.5 / 7)
        assert summary.weekly_projection == pytest.approx(summary.daily_average * 7)
        assert summary.monthly_projection == pytest.approx(summary.daily_average * 30)

    def test_short_window_divides_by_one_day(self):
        gig = _done("a", START + timedelta(hours=1), pay_base=24.0)
        summary = aggregate_earnings([gig], [], START, START + timedelta(hours=6))
        assert summary.daily_average == pytest.approx(24.0)

    def test_expenses_only_gives_negative_net(self):
        entries = [_entry(LedgerEntryType.EXPENSE, 10.0, START + timedelta(days=1))]
        summary = aggregate_earnings([], entries, START, END)
        assert summary.net_income == -10.0
        assert summary.average_hourly_rate == 0.0


# ── Filtering ─────────────────────────────────────────────────────────────────

class TestFiltering:
    def test_bounds_inclusive(self):
        gigs = [_done("start", START), _done("end", END)]
        entries = [_entry(LedgerEntryType.EARNING, 5.0, END)]
        summary = aggregate_earnings(gigs, entries, START, END)
        assert summary.completed_count == 2
        assert summary.total_earnings == pytest.approx(65.0)

    def test_outside_window_ignored(self):
        gigs = [
            _done("before", START - timedelta(seconds=1)),
            _done("after", END + timedelta(seconds=1)),
        ]
        entries = [_entry(LedgerEntryType.EARNING, 5.0, END + timedelta(days=1))]
        summary = aggregate_earnings(gigs, entries, START, END)
        assert summary.completed_count == 0
        assert summary.total_earnings == 0.0

    def test_only_completed_count(self):
        gigs = [
            _done("sel", START + timedelta(days=1), status=GigStatus.SELECTED),
            _done("avail", START + timedelta(days=1), status=GigStatus.AVAILABLE),
            _done("ok", START + timedelta(days=1)),
        ]
        assert aggregate_earnings(gigs, [], START, END).completed_count == 1

    def test_completion_falls_back_to_updated_at(self):
        gig = _done("legacy", None, updated_at=START + timedelta(days=2))
        assert aggregate_earnings([gig], [], START, END).completed_count == 1

    def test_user_scope(self):
        gigs = [
            _done("mine", START + timedelta(days=1)),
            _done("theirs", START + timedelta(days=1), user_id="user-2"),
        ]
        entries = [_entry(LedgerEntryType.EARNING, 50.0, START + timedelta(days=1), user_id="user-2")]
        summary = aggregate_earnings(gigs, entries, START, END, user_id="user-1")
        assert summary.completed_count == 1
        assert summary.total_earnings == pytest.approx(30.0)


# ── Platforms ─────────────────────────────────────────────────────────────────

class TestTopPlatforms:
    def test_sorted_by_earnings_desc(self):
        when = START + timedelta(days=1)
        gigs = [
            _done("1", when, pay_base=10.0, source_id="uber"),
            _done("2", when, pay_base=50.0, source_id="doordash"),
            _done("3", when, pay_base=15.0, source_id="uber"),
        ]
        top = aggregate_earnings(gigs, [], START, END).top_platforms
        assert [p.platform for p in top] == ["doordash", "uber"]
        assert top[1].earnings == pytest.approx(25.0)
        assert top[1].count == 2

    def test_capped_at_top_n(self):
        when = START + timedelta(days=1)
        gigs = [_done(str(i), when, pay_base=10.0 + i, source_id=f"p{i}") for i in range(8)]
        top = aggregate_earnings(gigs, [], START, END).top_platforms
        assert len(top) == 5
        assert top[0].platform == "p7"

    def test_ledger_entries_do_not_create_platforms(self):
        entries = [_entry(LedgerEntryType.EARNING, 100.0, START + timedelta(days=1))]
        assert aggregate_earnings([], entries, START, END).top_platforms == ()


# ── Breakdown ─────────────────────────────────────────────────────────────────

class TestEarningsBreakdown:
    def _gigs(self):
        return [
            _done("a", datetime(2025, 6, 3, 10, tzinfo=timezone.utc), pay_base=10.0),   # Tue
            _done("b", datetime(2025, 6, 3, 18, tzinfo=timezone.utc), pay_base=20.0),   # Tue
            _done("c", datetime(2025, 6, 8, 9, tzinfo=timezone.utc), pay_base=5.0),     # Sun
            _done("d", datetime(2025, 7, 1, 9, tzinfo=timezone.utc), pay_base=7.0),     # Tue
        ]

    def test_by_day(self):
        rows = earnings_breakdown(self._gigs(), "day")
        assert [r.period for r in rows] == ["2025-06-03", "2025-06-08", "2025-07-01"]
        assert rows[0].earnings == pytest.approx(30.0)
        assert rows[0].gigs == 2

    def test_by_week_starts_on_sunday(self):
        rows = earnings_breakdown(self._gigs(), "week")
        assert [r.period for r in rows] == ["2025-06-01", "2025-06-08", "2025-06-29"]

    def test_by_month(self):
        rows = earnings_breakdown(self._gigs(), "month")
        assert [(r.period, r.gigs) for r in rows] == [("2025-06", 3), ("2025-07", 1)]

    def test_ignores_non_completed(self):
        gigs = [_done("x", START, status=GigStatus.SELECTED)]
        assert earnings_breakdown(gigs, "day") == []

    def test_unknown_group_by(self):
        with pytest.raises(ValueError):
            earnings_breakdown(self._gigs(), "year")
