"""
Typed errors raised by the decision engine and the gig lifecycle.

Every error carries a stable ``kind`` string so the calling layer (CLI,
HTTP handler) can map it to a user-facing message or status code without
parsing exception text. All of them are ``ValueError`` subclasses: they
signal bad input, never an internal fault, and are never retried.

Divide-by-zero situations are *not* errors — they degrade to ``0.0``.
"""

from __future__ import annotations


class GigPlannerError(ValueError):
    """Base class for all gig-planner input errors."""

    kind: str = "gig_planner_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class InvalidRecord(GigPlannerError):
    """A gig's economic or logistic fields cannot be scored."""

    kind = "invalid_record"


class InvalidBudget(GigPlannerError):
    """The schedule hours budget is not strictly positive."""

    kind = "invalid_budget"


class InvalidRange(GigPlannerError):
    """An aggregation window ends before it starts."""

    kind = "invalid_range"


class InvalidTransition(GigPlannerError):
    """A gig status change violates the monotonic lifecycle."""

    kind = "invalid_transition"


class GigNotFound(GigPlannerError):
    """A referenced gig does not exist for the given user."""

    kind = "not_found"
