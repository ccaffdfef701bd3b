"""
Gig model — the Opportunity Record at the centre of the decision engine.

A ``Gig`` is one paid, time-boxed task imported from an external source
(email, CSV, manual entry). The model is frozen: every change produces a new
instance, which keeps the engine side-effect free and makes "compute, then
store" explicit for callers.

Score consistency
-----------------
``score`` and ``priority`` are derived from the economic/logistic fields.
``with_updates()`` clears ``score`` whenever one of those fields changes, so
a stale score can never survive an edit; the schedule selector re-scores any
record whose ``score`` is ``None``.

Lifecycle
---------
``transition_to()`` enforces the monotonic status order defined in
``gig_planner.taxonomy.gig_taxonomy.ALLOWED_TRANSITIONS``.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from gig_planner.errors import InvalidTransition
from gig_planner.taxonomy.gig_taxonomy import GigStatus, PriorityTier, can_transition
from gig_planner.utils.time_utils import ensure_utc, utcnow

if TYPE_CHECKING:
    from gig_planner.engine.scorer import ScoreResult

# Fields that feed the scorer; changing any of them invalidates ``score``.
SCORE_INPUT_FIELDS: frozenset[str] = frozenset({
    "pay_base", "tip_expected", "pay_bonus",
    "estimated_duration", "travel_distance", "travel_time", "due_date",
})

_MONEY_FIELDS = ("pay_base", "tip_expected", "pay_bonus")


def new_gig_id() -> str:
    """Return a fresh opaque gig identifier."""
    return str(uuid4())


class Gig(BaseModel):
    """One paid task the worker may choose to perform.

    Attributes:
        gig_id: Opaque unique identifier (UUID4 string by default).
        user_id: Owning worker.
        source_id: Platform or channel the gig came from, e.g. ``"doordash"``.
        title: Short human-readable label.
        description: Optional free text.
        pay_base: Guaranteed pay, >= 0.
        tip_expected: Expected tip, >= 0.
        pay_bonus: Promotional bonus, >= 0.
        location: Free-text address or area.
        latitude / longitude: Optional coordinates.
        estimated_duration: Work time in minutes, > 0.
        travel_distance: Miles to reach the gig, or ``None`` if unknown.
        travel_time: Minutes to reach the gig, or ``None`` if unknown.
        due_date: Instant by which the gig must be done.
        priority: Tier derived from ``score``.
        score: 0–100 composite score, ``None`` until scored.
        status: Lifecycle state.
        external_dedup_id: Source message id used to skip re-imports.
        created_at / updated_at: Audit timestamps (UTC).
        completed_at: When the gig reached ``completed``.
    """

    model_config = ConfigDict(frozen=True)

    gig_id: str = Field(default_factory=new_gig_id)
    user_id: str
    source_id: str
    title: str
    description: Optional[str] = None
    pay_base: float
    tip_expected: float = 0.0
    pay_bonus: float = 0.0
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    estimated_duration: int
    travel_distance: Optional[float] = None
    travel_time: Optional[int] = None
    due_date: datetime
    priority: PriorityTier = PriorityTier.MEDIUM
    score: Optional[int] = None
    status: GigStatus = GigStatus.AVAILABLE
    external_dedup_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None

    @field_validator("user_id", "source_id", "title", "location")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty.")
        return v.strip()

    @field_validator("due_date", "created_at", "updated_at", "completed_at")
    @classmethod
    def validate_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else None

    @field_validator("estimated_duration")
    @classmethod
    def validate_duration(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"estimated_duration must be > 0 minutes, got {v}.")
        return v

    @field_validator("score")
    @classmethod
    def validate_score_range(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and not 0 <= v <= 100:
            raise ValueError(f"score must be in [0, 100], got {v}.")
        return v

    @model_validator(mode="after")
    def validate_economics(self) -> "Gig":
        for name in _MONEY_FIELDS:
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} must be a finite, non-negative amount, got {value}.")
        if self.travel_distance is not None and (
            not math.isfinite(self.travel_distance) or self.travel_distance < 0
        ):
            raise ValueError(
                f"travel_distance must be finite and non-negative, got {self.travel_distance}."
            )
        if self.travel_time is not None and self.travel_time < 0:
            raise ValueError("travel_time must be non-negative.")
        if self.latitude is not None and not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude must be in [-90, 90], got {self.latitude}.")
        if self.longitude is not None and not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude must be in [-180, 180], got {self.longitude}.")
        return self

    # ── Derived values ────────────────────────────────────────────────────────

    @property
    def total_pay(self) -> float:
        """Base pay plus expected tip plus bonus."""
        return self.pay_base + self.tip_expected + self.pay_bonus

    @property
    def total_minutes(self) -> int:
        """Work plus travel time, the amount of budget this gig consumes."""
        return self.estimated_duration + (self.travel_time or 0)

    @property
    def is_scored(self) -> bool:
        return self.score is not None

    @property
    def completion_time(self) -> datetime:
        """Instant the gig was completed; falls back to ``updated_at``."""
        return self.completed_at or self.updated_at

    # ── Copy-on-write mutations ───────────────────────────────────────────────

    def with_updates(self, at: Optional[datetime] = None, **changes: Any) -> "Gig":
        """Return a re-validated copy with ``changes`` applied.

        If any scorer input changes, ``score`` is cleared so the record must
        be re-scored before it is scheduled. Status changes must go through
        ``transition_to()``.

        Raises:
            InvalidTransition: If ``changes`` contains ``status``.
            pydantic.ValidationError: If the result is not a valid gig.
        """
        if "status" in changes:
            raise InvalidTransition("Use transition_to() to change a gig's status.")

        data = self.model_dump()
        data.update(changes)
        if any(
            name in changes and changes[name] != getattr(self, name)
            for name in SCORE_INPUT_FIELDS
        ):
            data["score"] = None
        data["updated_at"] = at or utcnow()
        return Gig.model_validate(data)

    def with_score(self, result: "ScoreResult") -> "Gig":
        """Return a copy carrying ``result.score`` and ``result.priority``."""
        return self.model_copy(update={"score": result.score, "priority": result.priority})

    def transition_to(self, target: GigStatus, at: Optional[datetime] = None) -> "Gig":
        """Return a copy moved to ``target`` status.

        A same-status transition is a no-op and returns ``self``.

        Raises:
            InvalidTransition: If the move violates the lifecycle order.
        """
        target = GigStatus(target)
        if target == self.status:
            return self
        if not can_transition(self.status, target):
            raise InvalidTransition(
                f"Gig {self.gig_id} cannot move from '{self.status}' to '{target}'."
            )
        moment = ensure_utc(at) if at is not None else utcnow()
        update: dict[str, Any] = {"status": target, "updated_at": moment}
        if target == GigStatus.COMPLETED:
            update["completed_at"] = moment
        return self.model_copy(update=update)
