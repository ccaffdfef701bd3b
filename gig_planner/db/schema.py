"""
SQLite schema DDL for the storage collaborator.

All statements use ``IF NOT EXISTS`` so ``apply_schema()`` is idempotent.

Tables:
  1. gigs            — Opportunity Records (one row per gig)
  2. ledger_entries  — earnings / expenses, optional FK to gigs

Timestamps are stored as fixed-width UTC ISO 8601 text (see
``gig_planner.utils.time_utils.to_iso``) so range filters can compare text.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

# ── DDL statements ─────────────────────────────────────────────────────────────

_DDL_GIGS = """
CREATE TABLE IF NOT EXISTS gigs (
    gig_id             TEXT    PRIMARY KEY,
    user_id            TEXT    NOT NULL,
    source_id          TEXT    NOT NULL,
    title              TEXT    NOT NULL,
    description        TEXT,
    pay_base           REAL    NOT NULL CHECK (pay_base >= 0),
    tip_expected       REAL    NOT NULL DEFAULT 0 CHECK (tip_expected >= 0),
    pay_bonus          REAL    NOT NULL DEFAULT 0 CHECK (pay_bonus >= 0),
    location           TEXT    NOT NULL,
    latitude           REAL,
    longitude          REAL,
    estimated_duration INTEGER NOT NULL CHECK (estimated_duration > 0),
    travel_distance    REAL    CHECK (travel_distance IS NULL OR travel_distance >= 0),
    travel_time        INTEGER CHECK (travel_time IS NULL OR travel_time >= 0),
    due_date           TEXT    NOT NULL,
    priority           TEXT    NOT NULL DEFAULT 'medium'
                               CHECK (priority IN ('high', 'medium', 'low')),
    score              INTEGER CHECK (score IS NULL OR score BETWEEN 0 AND 100),
    status             TEXT    NOT NULL DEFAULT 'available'
                               CHECK (status IN ('available', 'selected', 'completed', 'expired')),
    external_dedup_id  TEXT,
    created_at         TEXT    NOT NULL,
    updated_at         TEXT    NOT NULL,
    completed_at       TEXT
);
"""

_DDL_GIGS_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_gigs_user_status
    ON gigs(user_id, status);
CREATE UNIQUE INDEX IF NOT EXISTS idx_gigs_user_dedup
    ON gigs(user_id, external_dedup_id)
    WHERE external_dedup_id IS NOT NULL;
"""

_DDL_LEDGER_ENTRIES = """
CREATE TABLE IF NOT EXISTS ledger_entries (
    entry_id          TEXT    PRIMARY KEY,
    user_id           TEXT    NOT NULL,
    gig_id            TEXT    REFERENCES gigs(gig_id) ON DELETE SET NULL,
    entry_type        TEXT    NOT NULL CHECK (entry_type IN ('earning', 'expense')),
    category          TEXT    NOT NULL,
    amount            REAL    NOT NULL CHECK (amount >= 0),
    description       TEXT,
    transaction_date  TEXT    NOT NULL,
    status            TEXT    NOT NULL DEFAULT 'pending'
                              CHECK (status IN ('pending', 'processing', 'paid')),
    created_at        TEXT    NOT NULL
);
"""

_DDL_LEDGER_ENTRIES_INDEXES = """
CREATE INDEX IF NOT EXISTS idx_ledger_user_date
    ON ledger_entries(user_id, transaction_date);
"""

_ALL_DDL: list[str] = [
    _DDL_GIGS,
    _DDL_GIGS_INDEXES,
    _DDL_LEDGER_ENTRIES,
    _DDL_LEDGER_ENTRIES_INDEXES,
]

ALL_TABLE_NAMES = ["gigs", "ledger_entries"]


def apply_schema(conn: sqlite3.Connection) -> None:
    """Apply all DDL statements to ``conn`` (idempotent).

    Args:
        conn: An open ``sqlite3.Connection``.
    """
    for ddl in _ALL_DDL:
        for statement in _split_ddl(ddl):
            conn.execute(statement)

    conn.commit()
    logger.info("Schema applied: %d tables, indexes created/verified.", len(ALL_TABLE_NAMES))


def _split_ddl(ddl: str) -> list[str]:
    """Split a multi-statement DDL block on semicolons."""
    return [s.strip() for s in ddl.split(";") if s.strip()]


def get_existing_tables(conn: sqlite3.Connection) -> list[str]:
    """Return table names present in the database, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]


def get_existing_indexes(conn: sqlite3.Connection) -> list[str]:
    """Return explicitly created index names, sorted."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='index' AND sql IS NOT NULL ORDER BY name;"
    ).fetchall()
    return [row["name"] for row in rows]
