"""
Gig scoring: converts one ``Gig`` into a 0–100 priority score, a priority
tier, and two efficiency metrics.

Score formula (weighted sum, range 0–100)
-----------------------------------------
    score = round(
        hourly_score    * 0.4    # gross pay per hour of work
        + travel_score  * 0.3    # share of pay left after mileage cost
        + urgency_score * 0.2    # how soon the gig is due
        + quick_score   * 0.1    # short gigs are easier to fit in
    )

Weights, the mileage rate and the hourly ceiling come from ``ScoringConfig``.

Component explanations
----------------------
hourly_score (0–100):
    hourly_rate = total_pay / (estimated_duration / 60).
    Rate at or above the ceiling ($50/h by default) → 100.

travel_score (0–100):
    travel_cost = travel_distance * mileage_rate;
    (total_pay - travel_cost) / total_pay * 100, floored at 0.
    Zero total pay → 0.

urgency_score (25–100):
    Hours until due: < 2 → 100, < 6 → 75, < 24 → 50, otherwise 25.
    Overdue gigs count as most urgent.

quick_score (50–100):
    Duration <= 30 min → 100, <= 60 min → 75, otherwise 50.

Priority tier
-------------
    score >= high_threshold (80)   → high
    score >= medium_threshold (50) → medium
    otherwise                      → low

Missing optional fields (travel distance/time) count as 0. The scorer is
pure: it never touches storage and never mutates its input.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from gig_planner.config import ScoringConfig
from gig_planner.errors import InvalidRecord
from gig_planner.models.gig import Gig
from gig_planner.taxonomy.gig_taxonomy import PriorityTier
from gig_planner.utils.time_utils import hours_until, utcnow

logger = logging.getLogger(__name__)

_DEFAULT_CONFIG = ScoringConfig()

# (upper bound in hours, sub-score); first bound that the gig is under wins.
_URGENCY_STEPS: tuple[tuple[float, float], ...] = ((2.0, 100.0), (6.0, 75.0), (24.0, 50.0))
_URGENCY_FLOOR = 25.0

# (max duration in minutes, sub-score)
_QUICK_STEPS: tuple[tuple[int, float], ...] = ((30, 100.0), (60, 75.0))
_QUICK_FLOOR = 50.0


@dataclass(frozen=True)
class ScoreResult:
    """Everything the scorer derives from one gig.

    Attributes:
        score:             Final 0–100 integer score.
        priority:          Tier derived from ``score``.
        earnings_per_hour: Pay net of mileage cost per hour of work + travel.
        earnings_per_mile: Gross pay per travel mile (0 without travel).
        hourly_score:      0–100 hourly-rate sub-score.
        travel_score:      0–100 travel-efficiency sub-score.
        urgency_score:     25–100 urgency sub-score.
        quick_score:       50–100 quick-turnaround sub-score.
        hourly_rate:       Gross pay per hour of work.
        travel_cost:       ``travel_distance * mileage_rate``.
        hours_until_due:   Signed hours from ``now`` to ``due_date``.
    """

    score:             int
    priority:          PriorityTier
    earnings_per_hour: float
    earnings_per_mile: float
    hourly_score:      float
    travel_score:      float
    urgency_score:     float
    quick_score:       float
    hourly_rate:       float
    travel_cost:       float
    hours_until_due:   float


def compute_score(
    gig: Gig,
    now: Optional[datetime] = None,
    config: ScoringConfig = _DEFAULT_CONFIG,
) -> ScoreResult:
    """Score one gig.

    Args:
        gig:    The record to score.
        now:    Reference instant for urgency; defaults to the current time.
        config: Weights, mileage rate and thresholds.

    Returns:
        ``ScoreResult`` with score, tier, efficiency metrics and sub-scores.

    Raises:
        InvalidRecord: If ``estimated_duration <= 0`` or a money field is negative.
    """
    _validate(gig)
    now = now or utcnow()

    total_pay = gig.total_pay
    distance = gig.travel_distance or 0.0

    # ── Hourly rate ───────────────────────────────────────────────────────────
    hourly_rate = total_pay / (gig.estimated_duration / 60.0)
    hourly_score = min(100.0, hourly_rate / config.hourly_rate_ceiling * 100.0)

    # ── Travel efficiency ─────────────────────────────────────────────────────
    travel_cost = distance * config.mileage_rate
    if total_pay > 0:
        travel_score = max(0.0, (total_pay - travel_cost) / total_pay * 100.0)
    else:
        travel_score = 0.0

    # ── Urgency ───────────────────────────────────────────────────────────────
    due_in = hours_until(gig.due_date, now)
    urgency_score = next(
        (value for bound, value in _URGENCY_STEPS if due_in < bound), _URGENCY_FLOOR
    )

    # ── Quick turnaround ──────────────────────────────────────────────────────
    quick_score = next(
        (value for limit, value in _QUICK_STEPS if gig.estimated_duration <= limit),
        _QUICK_FLOOR,
    )

    weighted = (
        hourly_score    * config.weight_hourly
        + travel_score  * config.weight_travel
        + urgency_score * config.weight_urgency
        + quick_score   * config.weight_quick
    )
    score = _clamp_int(_round_half_up(weighted), 0, 100)

    return ScoreResult(
        score=score,
        priority=priority_for_score(score, config),
        earnings_per_hour=earnings_per_hour(gig, config.mileage_rate),
        earnings_per_mile=earnings_per_mile(gig),
        hourly_score=round(hourly_score, 2),
        travel_score=round(travel_score, 2),
        urgency_score=urgency_score,
        quick_score=quick_score,
        hourly_rate=round(hourly_rate, 4),
        travel_cost=round(travel_cost, 4),
        hours_until_due=round(due_in, 4),
    )


def priority_for_score(score: int, config: ScoringConfig = _DEFAULT_CONFIG) -> PriorityTier:
    """Map a 0–100 score onto a priority tier."""
    if score >= config.high_threshold:
        return PriorityTier.HIGH
    if score >= config.medium_threshold:
        return PriorityTier.MEDIUM
    return PriorityTier.LOW


def earnings_per_hour(gig: Gig, mileage_rate: float = _DEFAULT_CONFIG.mileage_rate) -> float:
    """Pay net of mileage cost per hour of work plus travel (0 if no time)."""
    total_minutes = gig.estimated_duration + (gig.travel_time or 0)
    if total_minutes <= 0:
        logger.debug("Gig %s has no time; earnings_per_hour degrades to 0", gig.gig_id)
        return 0.0
    net_pay = gig.total_pay - (gig.travel_distance or 0.0) * mileage_rate
    return net_pay / (total_minutes / 60.0)


def earnings_per_mile(gig: Gig) -> float:
    """Gross pay per travel mile (0 when distance is absent or zero)."""
    distance = gig.travel_distance or 0.0
    if distance <= 0:
        return 0.0
    return gig.total_pay / distance


def score_gigs(
    gigs: Iterable[Gig],
    now: Optional[datetime] = None,
    config: ScoringConfig = _DEFAULT_CONFIG,
) -> list[Gig]:
    """Return scored copies of ``gigs`` in input order.

    Each record is scored independently against the same ``now``.
    """
    now = now or utcnow()
    return [gig.with_score(compute_score(gig, now, config)) for gig in gigs]


def build_reasoning(result: ScoreResult) -> str:
    """Assemble a human-readable explanation of a score.

    Returns a semicolon-separated list such as::

        "Strong rate: $62.00/h gross; Travel eats 24% of pay; Due within 2h"
    """
    reasons: list[str] = []

    if result.hourly_score >= 100.0:
        reasons.append(f"Strong rate: ${result.hourly_rate:.2f}/h gross")
    elif result.hourly_score < 40.0:
        reasons.append(f"Low rate: ${result.hourly_rate:.2f}/h gross")

    if result.travel_cost > 0:
        eaten = 100.0 - result.travel_score
        if eaten >= 20.0:
            reasons.append(f"Travel eats {eaten:.0f}% of pay")
        else:
            reasons.append(f"Travel cost ${result.travel_cost:.2f}")

    if result.hours_until_due < 0:
        reasons.append("Overdue")
    elif result.urgency_score >= 100.0:
        reasons.append("Due within 2h")
    elif result.urgency_score >= 75.0:
        reasons.append("Due within 6h")

    if result.quick_score >= 100.0:
        reasons.append("Quick gig (30 min or less)")

    return "; ".join(reasons) or "No notable signals"


# ── Helpers ───────────────────────────────────────────────────────────────────

def _validate(gig: Gig) -> None:
    if gig.estimated_duration is None or gig.estimated_duration <= 0:
        raise InvalidRecord(
            f"Gig {gig.gig_id}: estimated_duration must be > 0, got {gig.estimated_duration}."
        )
    for name in ("pay_base", "tip_expected", "pay_bonus"):
        if getattr(gig, name) < 0:
            raise InvalidRecord(f"Gig {gig.gig_id}: {name} must be non-negative.")
    if (gig.travel_distance or 0.0) < 0 or (gig.travel_time or 0) < 0:
        raise InvalidRecord(f"Gig {gig.gig_id}: travel fields must be non-negative.")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _clamp_int(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))
