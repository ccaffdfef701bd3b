"""
ASCII terminal formatters for CLI reporting commands.

All formatters accept engine results (gigs, plans, summaries) and return
plain multi-line strings suitable for ``typer.echo()``.

No third-party dependencies (no ``rich``, no ``colorama``).
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from gig_planner.models.analytics import (
    EarningsProjection,
    EarningsSummary,
    PeriodEarnings,
    ScheduleEarnings,
)
from gig_planner.models.gig import Gig


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _truncate(text: str, width: int) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


# ── Gig tables ────────────────────────────────────────────────────────────────


def format_gig_table(gigs: Sequence[Gig], title: str = "Gigs") -> str:
    """Format gigs as one row each, in the order given.

    Example::

        Score  Tier    Pay       Min  Miles  Due (UTC)         Status     Title
        ------------------------------------------------------------------------
           69  medium  $30.00     45    5.0  2025-06-01 18:00  available  Lunch
    """
    lines: list[str] = ["", f"=== {title} ({len(gigs)}) ==="]
    if not gigs:
        lines.append("  (no gigs)")
        return "\n".join(lines)

    header = (
        f"  {'Score':>5}  {'Tier':<6}  {'Pay':>9}  {'Min':>4}  {'Miles':>6}  "
        f"{'Due (UTC)':<16}  {'Status':<9}  {'Source':<12}  Title"
    )
    lines.append(header)
    lines.append("  " + "-" * (len(header) + 10))

    for gig in gigs:
        score = f"{gig.score:>5}" if gig.score is not None else f"{'-':>5}"
        miles = f"{gig.travel_distance:>6.1f}" if gig.travel_distance is not None else f"{'-':>6}"
        lines.append(
            f"  {score}  {gig.priority.value:<6}  {_money(gig.total_pay):>9}  "
            f"{gig.total_minutes:>4}  {miles}  "
            f"{gig.due_date.strftime('%Y-%m-%d %H:%M'):<16}  {gig.status.value:<9}  "
            f"{_truncate(gig.source_id, 12):<12}  {_truncate(gig.title, 40)}"
        )
        lines.append(f"  {'':>5}  id: {gig.gig_id}")

    return "\n".join(lines)


def format_schedule(
    selected: Sequence[Gig],
    earnings: ScheduleEarnings,
    budget_minutes: float,
    applied: bool = False,
) -> str:
    """Format a selector plan plus its expected economics."""
    lines = [format_gig_table(selected, title="Schedule")]
    lines.append("")
    lines.append(f"  Time used:       {earnings.total_minutes} / {budget_minutes:.0f} min")
    lines.append(f"  Gross earnings:  {_money(earnings.total_earnings)}")
    lines.append(f"  Travel costs:    {_money(earnings.travel_costs)}")
    lines.append(f"  Net earnings:    {_money(earnings.net_earnings)}")
    lines.append(f"  Net hourly rate: {_money(earnings.hourly_rate)}/h")
    if applied:
        lines.append("")
        lines.append(f"  [APPLIED] {len(selected)} gig(s) marked selected.")
    return "\n".join(lines)


# ── Earnings ──────────────────────────────────────────────────────────────────


def format_earnings_summary(summary: EarningsSummary) -> str:
    """Format an ``EarningsSummary`` with its top platforms."""
    lines: list[str] = [
        "",
        "=== Earnings Summary ===",
        f"  Window:           {summary.start:%Y-%m-%d %H:%M} → {summary.end:%Y-%m-%d %H:%M} UTC",
        f"  Completed gigs:   {summary.completed_count}",
        f"  Total earnings:   {_money(summary.total_earnings)}",
        f"  Total expenses:   {_money(summary.total_expenses)}",
        f"  Net income:       {_money(summary.net_income)}",
        f"  Hours worked:     {summary.total_hours_worked:.2f}",
        f"  Miles driven:     {summary.total_miles:.1f}",
        f"  Avg hourly rate:  {_money(summary.average_hourly_rate)}/h",
        f"  Earnings / mile:  {_money(summary.earnings_per_mile)}",
        f"  Daily average:    {_money(summary.daily_average)}",
        f"  Weekly pace:      {_money(summary.weekly_projection)}",
        f"  Monthly pace:     {_money(summary.monthly_projection)}",
    ]

    if summary.top_platforms:
        lines.append("")
        lines.append(f"  {'Platform':<20}  {'Earnings':>10}  {'Gigs':>5}")
        lines.append("  " + "-" * 39)
        for row in summary.top_platforms:
            lines.append(
                f"  {_truncate(row.platform, 20):<20}  {_money(row.earnings):>10}  {row.count:>5}"
            )
    return "\n".join(lines)


def format_breakdown(rows: Iterable[PeriodEarnings], group_by: str) -> str:
    rows = list(rows)
    lines = ["", f"=== Earnings by {group_by} ==="]
    if not rows:
        lines.append("  (no completed gigs)")
        return "\n".join(lines)
    lines.append(f"  {'Period':<12}  {'Earnings':>10}  {'Gigs':>5}")
    lines.append("  " + "-" * 31)
    for row in rows:
        lines.append(f"  {row.period:<12}  {_money(row.earnings):>10}  {row.gigs:>5}")
    return "\n".join(lines)


def format_projection(projection: EarningsProjection, lifetime_completed: Optional[int] = None) -> str:
    """Format an ``EarningsProjection``; variance is shown as a signed percent."""
    lines = [
        "",
        "=== Earnings Forecast ===",
        f"  Current pace (7d):     {_money(projection.current_pace)}/day",
        f"  Historical pace (30d): {_money(projection.historical_pace)}/day",
        f"  Variance:              {projection.variance:+.1f}%",
        f"  Projected daily:       {_money(projection.projected_daily)}",
        f"  Projected weekly:      {_money(projection.projected_weekly)}",
        f"  Projected monthly:     {_money(projection.projected_monthly)}",
        f"  Confidence:            {projection.confidence.value}",
    ]
    if lifetime_completed is not None:
        lines.append(f"  Lifetime completed:    {lifetime_completed}")
    return "\n".join(lines)
