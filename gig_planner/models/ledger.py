"""
Ledger entry model — one recorded cash movement (earning or expense).

Entries are independent of any particular gig (``gig_id`` is an optional
back-reference) and are immutable once created, except for the settlement
``status``, which moves through pending → processing → paid.
"""

from __future__ import annotations

import math
from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gig_planner.taxonomy.gig_taxonomy import LedgerEntryType, LedgerStatus
from gig_planner.utils.time_utils import ensure_utc, utcnow


class LedgerEntry(BaseModel):
    """A single earning or expense.

    Attributes:
        entry_id: Opaque unique identifier.
        user_id: Owning worker.
        gig_id: Related gig, if any.
        entry_type: ``earning`` or ``expense``.
        category: Free-form bucket, e.g. ``"payment"``, ``"fuel"``, ``"mileage"``.
        amount: Non-negative amount; the sign comes from ``entry_type``.
        description: Optional note.
        transaction_date: When the money moved (UTC).
        status: Settlement state.
        created_at: Audit timestamp.
    """

    model_config = ConfigDict(frozen=True)

    entry_id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    gig_id: Optional[str] = None
    entry_type: LedgerEntryType
    category: str
    amount: float
    description: Optional[str] = None
    transaction_date: datetime
    status: LedgerStatus = LedgerStatus.PENDING
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError(f"amount must be finite and non-negative, got {v}.")
        return v

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("category must not be empty.")
        return v.strip()

    @field_validator("transaction_date", "created_at")
    @classmethod
    def validate_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def is_earning(self) -> bool:
        return self.entry_type == LedgerEntryType.EARNING

    def with_status(self, status: LedgerStatus) -> "LedgerEntry":
        """Return a copy with a new settlement status."""
        return self.model_copy(update={"status": LedgerStatus(status)})
