"""
Decision engine: pure, synchronous functions over immutable snapshots.

Modules
-------
scorer     : ScoreResult + compute_score() + priority_for_score()
             + earnings_per_hour() / earnings_per_mile() + build_reasoning().
selector   : SchedulePlan + build_schedule() / select_schedule()
             + project_schedule_earnings().
aggregator : aggregate_earnings() + earnings_breakdown().
projection : project_earnings() + forecast_earnings().

No module here performs I/O or mutates its inputs; every call can run
concurrently for different users or windows.
"""

from gig_planner.engine.aggregator import aggregate_earnings, earnings_breakdown
from gig_planner.engine.projection import forecast_earnings, project_earnings
from gig_planner.engine.scorer import ScoreResult, compute_score, priority_for_score
from gig_planner.engine.selector import (
    SchedulePlan,
    build_schedule,
    project_schedule_earnings,
    select_schedule,
)

__all__ = [
    "ScoreResult",
    "SchedulePlan",
    "aggregate_earnings",
    "build_schedule",
    "compute_score",
    "earnings_breakdown",
    "forecast_earnings",
    "priority_for_score",
    "project_earnings",
    "project_schedule_earnings",
    "select_schedule",
]
