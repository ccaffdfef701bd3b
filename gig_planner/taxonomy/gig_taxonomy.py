"""
Gig taxonomy: the closed vocabularies used by records, ledger entries and
forecasts.

  - ``GigStatus``          — lifecycle state of a gig
  - ``PriorityTier``       — coarse bucket derived from the score
  - ``LedgerEntryType``    — direction of a cash movement
  - ``LedgerStatus``       — settlement state of a cash movement
  - ``ForecastConfidence`` — reliability label of an earnings projection
  - ``BreakdownPeriod``    — bucket size for period breakdowns

``ALLOWED_TRANSITIONS`` encodes the monotonic gig lifecycle::

    available → selected → completed
        │           │
        └─────┬─────┘
              ▼
           expired

``completed`` and ``expired`` are terminal.

This module has NO imports from any other ``gig_planner`` package.
"""

from enum import StrEnum


class GigStatus(StrEnum):
    """Lifecycle state of a gig."""

    AVAILABLE = "available"
    SELECTED = "selected"
    COMPLETED = "completed"
    EXPIRED = "expired"


class PriorityTier(StrEnum):
    """Priority bucket derived from the 0–100 score."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class LedgerEntryType(StrEnum):
    EARNING = "earning"
    EXPENSE = "expense"


class LedgerStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    PAID = "paid"


class ForecastConfidence(StrEnum):
    """Forecast reliability, driven by lifetime completed-gig count."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class BreakdownPeriod(StrEnum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


ALLOWED_TRANSITIONS: dict[GigStatus, frozenset[GigStatus]] = {
    GigStatus.AVAILABLE: frozenset({GigStatus.SELECTED, GigStatus.EXPIRED}),
    GigStatus.SELECTED:  frozenset({GigStatus.COMPLETED, GigStatus.EXPIRED}),
    GigStatus.COMPLETED: frozenset(),
    GigStatus.EXPIRED:   frozenset(),
}

TERMINAL_STATUSES: frozenset[GigStatus] = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)


def can_transition(current: GigStatus, target: GigStatus) -> bool:
    """Return True if ``current → target`` is a legal lifecycle move."""
    return target in ALLOWED_TRANSITIONS[current]
