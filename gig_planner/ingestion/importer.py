"""
Batch importer: deduplicates, scores and persists parsed gigs.

Producers (CSV parser, email/webhook adapters) hand over unscored ``Gig``
records; ``import_gigs()`` applies "compute, then store":

1. Build the set of already-stored ``external_dedup_id`` values **once**.
2. Skip records whose status is ``expired`` (cancellation notices).
3. Skip records whose dedup id was already seen, in storage or earlier in
   the same batch.
4. Store the rest as new, ``available`` records owned by ``user_id``.
5. Score each remaining record and insert it.

A record that cannot be scored or stored is reported in ``errors``; the rest
of the batch still goes in.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from gig_planner.config import ScoringConfig
from gig_planner.db.repositories.gig_repo import GigRepository
from gig_planner.engine.scorer import compute_score
from gig_planner.errors import GigPlannerError
from gig_planner.models.gig import Gig
from gig_planner.taxonomy.gig_taxonomy import GigStatus
from gig_planner.utils.time_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Outcome of one import batch.

    Attributes:
        imported: Stored gigs, scored, in input order.
        skipped:  ``(title, reason)`` for records deliberately not stored.
        errors:   ``(title, message)`` for records that failed.
    """

    imported: list[Gig] = field(default_factory=list)
    skipped:  list[tuple[str, str]] = field(default_factory=list)
    errors:   list[tuple[str, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.imported) + len(self.skipped) + len(self.errors)


def import_gigs(
    repo: GigRepository,
    user_id: str,
    gigs: Iterable[Gig],
    scoring_config: Optional[ScoringConfig] = None,
    now: Optional[datetime] = None,
) -> ImportResult:
    """Score and insert a batch of gigs for ``user_id``.

    Args:
        repo:           Repository bound to an open connection.
        user_id:        Owner; records for other users are reassigned to it.
        gigs:           Parsed, unscored records.
        scoring_config: Scorer configuration; defaults to ``ScoringConfig()``.
        now:            Reference instant for urgency scoring.

    Returns:
        ``ImportResult`` summarising the batch.
    """
    config = scoring_config or ScoringConfig()
    now = now or utcnow()
    result = ImportResult()

    seen_dedup_ids = repo.existing_dedup_ids(user_id)

    for gig in gigs:
        if gig.status == GigStatus.EXPIRED:
            result.skipped.append((gig.title, "Expired or cancelled"))
            continue

        dedup_id = gig.external_dedup_id
        if dedup_id is not None and dedup_id in seen_dedup_ids:
            result.skipped.append((gig.title, "Already imported"))
            continue

        try:
            gig = _as_new_record(gig, user_id)
            scored = gig.with_score(compute_score(gig, now, config))
            repo.insert(scored)
        except (GigPlannerError, sqlite3.IntegrityError) as exc:
            logger.warning(
                "Failed to import gig %r: %s", gig.title, exc, extra={"user_id": user_id}
            )
            result.errors.append((gig.title, str(exc)))
            continue

        result.imported.append(scored)
        if dedup_id is not None:
            seen_dedup_ids.add(dedup_id)

    logger.info(
        "Import for user=%s: %d imported, %d skipped, %d errors",
        user_id, len(result.imported), len(result.skipped), len(result.errors),
    )
    return result


def _as_new_record(gig: Gig, user_id: str) -> Gig:
    """Owned by ``user_id`` and ``available``; imports never skip the lifecycle."""
    changes: dict = {}
    if gig.user_id != user_id:
        changes["user_id"] = user_id
    if gig.status != GigStatus.AVAILABLE or gig.completed_at is not None:
        logger.debug("Gig %r imported as available (was %s)", gig.title, gig.status)
        changes.update(status=GigStatus.AVAILABLE, completed_at=None)
    return gig.model_copy(update=changes) if changes else gig
