"""
Schedule selector: picks an ordered subset of available gigs that fits in a
worker's hours budget.

This is a 0/1 knapsack variant solved greedily rather than exactly. The
greedy walk is deterministic, linear after sorting, and its behaviour on
pathological inputs is part of the contract; an exact solver would be a
separate, explicitly versioned algorithm.

Usage flow
----------
1. Drop records whose status is not ``available`` (silently) and duplicate ids.
2. Score any record whose ``score`` is ``None``.
3. Sort by score descending; ties by total minutes ascending (shorter first),
   then due date ascending, then ``gig_id`` ascending.
4. Walk the list, accepting a gig when
   ``running_minutes + duration + travel_time <= hours_budget * 60``.
   Rejected gigs are skipped and the walk continues, since a later, shorter
   gig may still fit.

Selection is advisory: nothing here changes a gig's status. Persisting the
result is ``GigRepository.apply_schedule()``'s job.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from gig_planner.config import ScoringConfig
from gig_planner.engine.scorer import compute_score
from gig_planner.errors import InvalidBudget
from gig_planner.models.analytics import ScheduleEarnings
from gig_planner.models.gig import Gig
from gig_planner.taxonomy.gig_taxonomy import GigStatus
from gig_planner.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = ScoringConfig()


@dataclass(frozen=True)
class SchedulePlan:
    """Outcome of one selector run.

    Attributes:
        selected:       Accepted gigs, in acceptance order.
        skipped:        Candidates that did not fit, in evaluation order.
        total_minutes:  Work plus travel minutes of ``selected``.
        budget_minutes: ``hours_budget * 60``.
    """

    selected:       tuple[Gig, ...]
    skipped:        tuple[Gig, ...] = field(default_factory=tuple)
    total_minutes:  int = 0
    budget_minutes: float = 0.0

    @property
    def remaining_minutes(self) -> float:
        return self.budget_minutes - self.total_minutes

    @property
    def gig_ids(self) -> list[str]:
        return [gig.gig_id for gig in self.selected]


def build_schedule(
    gigs: Iterable[Gig],
    hours_budget: float,
    now: Optional[datetime] = None,
    config: ScoringConfig = _DEFAULT_CONFIG,
) -> SchedulePlan:
    """Run the greedy selection and return the full plan.

    Args:
        gigs:         Candidate records (any status; non-available are ignored).
        hours_budget: Hours available, must be > 0.
        now:          Reference instant for scoring unscored records.
        config:       Scoring configuration for unscored records.

    Returns:
        ``SchedulePlan`` whose ``selected`` never exceeds the budget.

    Raises:
        InvalidBudget: If ``hours_budget`` is not strictly positive.
        InvalidRecord: If an unscored candidate cannot be scored.
    """
    if hours_budget is None or not hours_budget > 0:
        raise InvalidBudget(f"hours_budget must be > 0, got {hours_budget}.")

    now = now or utcnow()
    # 4.35 h * 60 is 260.99999999999997 in binary floating point.
    budget_minutes = round(hours_budget * 60.0, 6)

    candidates = _ranked_candidates(gigs, now, config)

    selected: list[Gig] = []
    skipped: list[Gig] = []
    running = 0
    for gig in candidates:
        needed = gig.total_minutes
        if running + needed <= budget_minutes:
            selected.append(gig)
            running += needed
        else:
            skipped.append(gig)

    logger.debug(
        "Schedule: %d of %d candidates selected, %d/%.0f minutes used",
        len(selected), len(candidates), running, budget_minutes,
    )
    return SchedulePlan(
        selected=tuple(selected),
        skipped=tuple(skipped),
        total_minutes=running,
        budget_minutes=budget_minutes,
    )


def select_schedule(
    gigs: Iterable[Gig],
    hours_budget: float,
    now: Optional[datetime] = None,
    config: ScoringConfig = _DEFAULT_CONFIG,
) -> list[Gig]:
    """Return the gigs to perform, in acceptance order.

    See ``build_schedule()`` for arguments and errors.
    """
    return list(build_schedule(gigs, hours_budget, now, config).selected)


def project_schedule_earnings(
    gigs: Iterable[Gig],
    mileage_rate: float = _DEFAULT_CONFIG.mileage_rate,
) -> ScheduleEarnings:
    """Expected economics of performing ``gigs``.

    Hourly rate is net earnings over work plus travel hours; 0 when the set
    is empty.
    """
    total_earnings = 0.0
    total_minutes = 0
    total_distance = 0.0
    for gig in gigs:
        total_earnings += gig.total_pay
        total_minutes += gig.total_minutes
        total_distance += gig.travel_distance or 0.0

    travel_costs = total_distance * mileage_rate
    net_earnings = total_earnings - travel_costs
    hourly_rate = net_earnings / (total_minutes / 60.0) if total_minutes > 0 else 0.0

    return ScheduleEarnings(
        total_earnings=round(total_earnings, 2),
        total_minutes=total_minutes,
        travel_costs=round(travel_costs, 2),
        net_earnings=round(net_earnings, 2),
        hourly_rate=round(hourly_rate, 2),
    )


# ── Helpers ───────────────────────────────────────────────────────────────────

def _ranked_candidates(
    gigs: Iterable[Gig],
    now: datetime,
    config: ScoringConfig,
) -> list[Gig]:
    """Available, de-duplicated, scored candidates in selection order."""
    seen: set[str] = set()
    candidates: list[Gig] = []
    for gig in gigs:
        if gig.status != GigStatus.AVAILABLE or gig.gig_id in seen:
            continue
        seen.add(gig.gig_id)
        if not gig.is_scored:
            gig = gig.with_score(compute_score(gig, now, config))
        candidates.append(gig)

    return sorted(candidates, key=_selection_key)


def _selection_key(gig: Gig) -> tuple:
    return (-(gig.score or 0), gig.total_minutes, gig.due_date, gig.gig_id)
