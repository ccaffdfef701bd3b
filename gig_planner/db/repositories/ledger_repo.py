"""
Repository for ledger entries.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Optional

from gig_planner.db.repositories.base import BaseRepository
from gig_planner.models.ledger import LedgerEntry
from gig_planner.taxonomy.gig_taxonomy import LedgerEntryType, LedgerStatus
from gig_planner.utils.time_utils import parse_iso_datetime, to_iso

logger = logging.getLogger(__name__)


class LedgerRepository(BaseRepository):
    """Read/write access to the ``ledger_entries`` table."""

    def insert(self, entry: LedgerEntry) -> str:
        """Insert a ledger entry and return its ``entry_id``."""
        self.execute(
            """
            INSERT INTO ledger_entries (
                entry_id, user_id, gig_id, entry_type, category, amount,
                description, transaction_date, status, created_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                entry.entry_id,
                entry.user_id,
                entry.gig_id,
                entry.entry_type.value,
                entry.category,
                entry.amount,
                entry.description,
                to_iso(entry.transaction_date),
                entry.status.value,
                to_iso(entry.created_at),
            ),
        )
        return entry.entry_id

    def get_by_id(self, entry_id: str) -> Optional[LedgerEntry]:
        row = self.fetchone("SELECT * FROM ledger_entries WHERE entry_id = ?;", (entry_id,))
        return _row_to_entry(row) if row else None

    def update_status(self, entry_id: str, status: LedgerStatus) -> bool:
        """Change the settlement status. Returns ``True`` if a row changed."""
        cur = self.execute(
            "UPDATE ledger_entries SET status = ? WHERE entry_id = ?;",
            (LedgerStatus(status).value, entry_id),
        )
        return cur.rowcount > 0

    def list(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        entry_type: Optional[LedgerEntryType] = None,
    ) -> list[LedgerEntry]:
        """A user's entries ordered by transaction date, optionally filtered.

        ``start`` and ``end`` are inclusive.
        """
        sql = "SELECT * FROM ledger_entries WHERE user_id = ?"
        params: list[object] = [user_id]
        if start is not None:
            sql += " AND transaction_date >= ?"
            params.append(to_iso(start))
        if end is not None:
            sql += " AND transaction_date <= ?"
            params.append(to_iso(end))
        if entry_type is not None:
            sql += " AND entry_type = ?"
            params.append(LedgerEntryType(entry_type).value)
        sql += " ORDER BY transaction_date, entry_id;"
        return [_row_to_entry(r) for r in self.fetchall(sql, tuple(params))]

    def status_totals(self, user_id: str) -> dict[LedgerStatus, float]:
        """Sum of earning amounts per settlement status.

        Every status is present in the result, 0.0 when it has no entries.
        """
        rows = self.fetchall(
            """
            SELECT status, SUM(amount) AS total
            FROM ledger_entries
            WHERE user_id = ? AND entry_type = 'earning'
            GROUP BY status;
            """,
            (user_id,),
        )
        totals = {status: 0.0 for status in LedgerStatus}
        for row in rows:
            totals[LedgerStatus(row["status"])] = float(row["total"] or 0.0)
        return totals


def _row_to_entry(row: sqlite3.Row) -> LedgerEntry:
    """Convert a ``sqlite3.Row`` from ``ledger_entries`` to a ``LedgerEntry``."""
    return LedgerEntry(
        entry_id=row["entry_id"],
        user_id=row["user_id"],
        gig_id=row["gig_id"],
        entry_type=LedgerEntryType(row["entry_type"]),
        category=row["category"],
        amount=row["amount"],
        description=row["description"],
        transaction_date=parse_iso_datetime(row["transaction_date"]),
        status=LedgerStatus(row["status"]),
        created_at=parse_iso_datetime(row["created_at"]),
    )
