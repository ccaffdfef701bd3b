"""
Shared pytest fixtures for the gig-planner test suite.

Provides:
  - ``in_memory_db``: A fresh in-memory SQLite connection with the full
    schema applied. Created anew for each test that requests it.
  - ``now``: A fixed reference instant so time-dependent logic is deterministic.
  - Sample domain object factories for use in multiple test modules.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Generator

import pytest

from gig_planner.db.schema import apply_schema
from gig_planner.models.gig import Gig
from gig_planner.models.ledger import LedgerEntry
from gig_planner.taxonomy.gig_taxonomy import LedgerEntryType

FIXED_NOW = datetime(2025, 6, 4, 12, 0, 0, tzinfo=timezone.utc)  # a Wednesday


# ── Database fixture ──────────────────────────────────────────────────────────

@pytest.fixture
def in_memory_db() -> Generator[sqlite3.Connection, None, None]:
    """Yield a fresh in-memory SQLite connection with the full schema applied.

    Foreign key enforcement is ON. Schema is applied idempotently.
    Connection is closed after the test.
    """
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    apply_schema(conn)
    yield conn
    conn.close()


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def sample_gig() -> Gig:
    """The worked example: $60 total, 90 min, 8.5 miles, due in 50 hours."""
    return Gig(
        gig_id="gig-sample-0001",
        user_id="user-1",
        source_id="doordash",
        title="Dinner rush delivery block",
        pay_base=45.0,
        tip_expected=5.0,
        pay_bonus=10.0,
        location="Downtown",
        estimated_duration=90,
        travel_distance=8.5,
        travel_time=15,
        due_date=FIXED_NOW + timedelta(hours=50),
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )


@pytest.fixture
def sample_ledger_entry() -> LedgerEntry:
    """A $25 fuel expense recorded one day before ``FIXED_NOW``."""
    return LedgerEntry(
        entry_id="entry-sample-0001",
        user_id="user-1",
        entry_type=LedgerEntryType.EXPENSE,
        category="fuel",
        amount=25.0,
        transaction_date=FIXED_NOW - timedelta(days=1),
        created_at=FIXED_NOW,
    )
