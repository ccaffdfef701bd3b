"""
Service layer: fetch collections from storage, run the pure engine, and
persist results ("compute, then store").

The engine never touches storage; these functions are the only place where
engine output is written back. Each takes repositories bound to an open
connection, so the caller's ``get_connection()`` block defines the
transaction.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from gig_planner.config import AnalyticsConfig, ScoringConfig
from gig_planner.db.repositories.gig_repo import GigRepository
from gig_planner.db.repositories.ledger_repo import LedgerRepository
from gig_planner.engine.aggregator import aggregate_earnings, earnings_breakdown
from gig_planner.engine.projection import forecast_earnings
from gig_planner.engine.scorer import compute_score
from gig_planner.engine.selector import SchedulePlan, build_schedule
from gig_planner.errors import GigNotFound
from gig_planner.models.analytics import EarningsProjection, EarningsSummary, PeriodEarnings
from gig_planner.models.gig import Gig
from gig_planner.taxonomy.gig_taxonomy import BreakdownPeriod, GigStatus, TERMINAL_STATUSES
from gig_planner.utils.time_utils import trailing_window, utcnow

logger = logging.getLogger(__name__)


def rescore_gigs(
    repo: GigRepository,
    user_id: str,
    config: Optional[ScoringConfig] = None,
    now: Optional[datetime] = None,
) -> list[Gig]:
    """Recompute score and priority for every non-terminal gig of a user.

    Only rows whose score or priority actually changed are written.

    Returns:
        All rescored gigs (changed or not), newest first.
    """
    config = config or ScoringConfig()
    now = now or utcnow()

    rescored: list[Gig] = []
    changed = 0
    for gig in repo.list(user_id):
        if gig.status in TERMINAL_STATUSES:
            continue
        scored = gig.with_score(compute_score(gig, now, config))
        if (scored.score, scored.priority) != (gig.score, gig.priority):
            repo.update(scored)
            changed += 1
        rescored.append(scored)

    logger.info(
        "Rescored %d gigs for user=%s (%d changed)",
        len(rescored), user_id, changed,
        extra={"user_id": user_id},
    )
    return rescored


def plan_schedule(
    repo: GigRepository,
    user_id: str,
    hours: float,
    config: Optional[ScoringConfig] = None,
    now: Optional[datetime] = None,
    apply: bool = False,
) -> SchedulePlan:
    """Select gigs for an hours budget; optionally mark them ``selected``.

    Raises:
        InvalidBudget: If ``hours`` is not strictly positive.
        InvalidTransition / GigNotFound: If applying the plan fails; nothing
            is persisted in that case.
    """
    config = config or ScoringConfig()
    now = now or utcnow()

    available = repo.list(user_id, status=GigStatus.AVAILABLE)
    plan = build_schedule(available, hours, now=now, config=config)

    if apply and plan.selected:
        repo.apply_schedule(user_id, plan.gig_ids, at=now)
    return plan


def complete_gig(
    repo: GigRepository,
    user_id: str,
    gig_id: str,
    at: Optional[datetime] = None,
) -> Gig:
    """Move a selected gig to ``completed`` and persist it.

    Raises:
        GigNotFound:       If the gig does not exist for ``user_id``.
        InvalidTransition: If the gig is not ``selected``.
    """
    return _transition(repo, user_id, gig_id, GigStatus.COMPLETED, at)


def expire_gig(
    repo: GigRepository,
    user_id: str,
    gig_id: str,
    at: Optional[datetime] = None,
) -> Gig:
    """Move an available or selected gig to ``expired`` and persist it."""
    return _transition(repo, user_id, gig_id, GigStatus.EXPIRED, at)


def earnings_report(
    gig_repo: GigRepository,
    ledger_repo: LedgerRepository,
    user_id: str,
    start: datetime,
    end: datetime,
    config: Optional[AnalyticsConfig] = None,
) -> EarningsSummary:
    """Aggregate a user's earnings over ``[start, end]``.

    Raises:
        InvalidRange: If ``start > end``.
    """
    config = config or AnalyticsConfig()
    completed = gig_repo.list_completed(user_id)
    entries = ledger_repo.list(user_id)
    return aggregate_earnings(
        completed, entries, start, end, user_id=user_id, top_n=config.top_platforms
    )


def earnings_forecast(
    gig_repo: GigRepository,
    ledger_repo: LedgerRepository,
    user_id: str,
    config: Optional[AnalyticsConfig] = None,
    now: Optional[datetime] = None,
) -> EarningsProjection:
    """Project near-term earnings from the trailing 7- and 30-day windows."""
    config = config or AnalyticsConfig()
    now = now or utcnow()

    start, end = trailing_window(now, config.monthly_window_days)
    completed = gig_repo.list_completed(user_id, start, end)
    entries = ledger_repo.list(user_id, start, end)
    lifetime = gig_repo.count(user_id, status=GigStatus.COMPLETED)

    return forecast_earnings(
        completed,
        entries,
        now=now,
        lifetime_completed_count=lifetime,
        user_id=user_id,
        config=config,
    )


def breakdown_report(
    gig_repo: GigRepository,
    user_id: str,
    group_by: BreakdownPeriod | str = BreakdownPeriod.DAY,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> list[PeriodEarnings]:
    """Completed-gig earnings per day, week or month."""
    completed = gig_repo.list_completed(user_id, start, end)
    return earnings_breakdown(completed, group_by, user_id=user_id)


def _transition(
    repo: GigRepository,
    user_id: str,
    gig_id: str,
    target: GigStatus,
    at: Optional[datetime],
) -> Gig:
    gig = repo.get_by_id(gig_id, user_id=user_id)
    if gig is None:
        raise GigNotFound(f"Gig {gig_id} does not exist for user {user_id}.")
    moved = gig.transition_to(target, at=at)
    if moved is not gig:
        repo.update(moved)
        logger.info(
            "Gig %s: %s → %s", gig_id, gig.status, target,
            extra={"user_id": user_id, "gig_id": gig_id},
        )
    return moved
