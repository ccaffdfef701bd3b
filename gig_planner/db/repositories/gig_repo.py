"""
Repository for gigs — insert, fetch, update, and batch schedule persistence.
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from typing import Iterable, Optional

from gig_planner.db.repositories.base import BaseRepository
from gig_planner.errors import GigNotFound, InvalidTransition
from gig_planner.models.gig import Gig
from gig_planner.taxonomy.gig_taxonomy import GigStatus, PriorityTier
from gig_planner.utils.time_utils import parse_iso_datetime, to_iso, utcnow

logger = logging.getLogger(__name__)

_COLUMNS = (
    "gig_id", "user_id", "source_id", "title", "description",
    "pay_base", "tip_expected", "pay_bonus",
    "location", "latitude", "longitude",
    "estimated_duration", "travel_distance", "travel_time", "due_date",
    "priority", "score", "status", "external_dedup_id",
    "created_at", "updated_at", "completed_at",
)


class GigRepository(BaseRepository):
    """Read/write access to the ``gigs`` table."""

    def insert(self, gig: Gig) -> str:
        """Insert a new gig and return its ``gig_id``.

        Raises:
            sqlite3.IntegrityError: On a duplicate ``gig_id`` or a duplicate
                ``(user_id, external_dedup_id)`` pair.
        """
        placeholders = ", ".join("?" for _ in _COLUMNS)
        self.execute(
            f"INSERT INTO gigs ({', '.join(_COLUMNS)}) VALUES ({placeholders});",
            _gig_params(gig),
        )
        return gig.gig_id

    def get_by_id(self, gig_id: str, user_id: Optional[str] = None) -> Optional[Gig]:
        """Fetch a single gig, optionally scoped to its owner.

        Returns:
            ``Gig`` or ``None`` if not found.
        """
        if user_id is None:
            row = self.fetchone("SELECT * FROM gigs WHERE gig_id = ?;", (gig_id,))
        else:
            row = self.fetchone(
                "SELECT * FROM gigs WHERE gig_id = ? AND user_id = ?;", (gig_id, user_id)
            )
        return _row_to_gig(row) if row else None

    def update(self, gig: Gig) -> None:
        """Overwrite every mutable column of an existing gig.

        Raises:
            GigNotFound: If no row has ``gig.gig_id``.
        """
        assignments = ", ".join(f"{col} = ?" for col in _COLUMNS[1:])
        cur = self.execute(
            f"UPDATE gigs SET {assignments} WHERE gig_id = ?;",
            (*_gig_params(gig)[1:], gig.gig_id),
        )
        if cur.rowcount == 0:
            raise GigNotFound(f"Gig {gig.gig_id} does not exist.")

    def delete(self, gig_id: str) -> bool:
        """Delete a gig. Returns ``True`` if a row was removed."""
        cur = self.execute("DELETE FROM gigs WHERE gig_id = ?;", (gig_id,))
        return cur.rowcount > 0

    def list(
        self,
        user_id: str,
        status: Optional[GigStatus] = None,
        priority: Optional[PriorityTier] = None,
        source_id: Optional[str] = None,
    ) -> list[Gig]:
        """List a user's gigs, newest first, with optional filters."""
        clauses = ["user_id = ?"]
        params: list[object] = [user_id]
        if status is not None:
            clauses.append("status = ?")
            params.append(GigStatus(status).value)
        if priority is not None:
            clauses.append("priority = ?")
            params.append(PriorityTier(priority).value)
        if source_id is not None:
            clauses.append("source_id = ?")
            params.append(source_id)

        rows = self.fetchall(
            f"SELECT * FROM gigs WHERE {' AND '.join(clauses)} "
            "ORDER BY created_at DESC, gig_id;",
            tuple(params),
        )
        return [_row_to_gig(r) for r in rows]

    def list_completed(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[Gig]:
        """Completed gigs whose completion time is in ``[start, end]``.

        Completion time is ``completed_at``, or ``updated_at`` for rows that
        were completed before ``completed_at`` was recorded.
        """
        sql = "SELECT * FROM gigs WHERE user_id = ? AND status = 'completed'"
        params: list[object] = [user_id]
        if start is not None:
            sql += " AND COALESCE(completed_at, updated_at) >= ?"
            params.append(to_iso(start))
        if end is not None:
            sql += " AND COALESCE(completed_at, updated_at) <= ?"
            params.append(to_iso(end))
        sql += " ORDER BY COALESCE(completed_at, updated_at);"
        return [_row_to_gig(r) for r in self.fetchall(sql, tuple(params))]

    def count(self, user_id: Optional[str] = None, status: Optional[GigStatus] = None) -> int:
        """Return the number of gigs, optionally filtered by owner and status."""
        clauses: list[str] = []
        params: list[object] = []
        if user_id is not None:
            clauses.append("user_id = ?")
            params.append(user_id)
        if status is not None:
            clauses.append("status = ?")
            params.append(GigStatus(status).value)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        row = self.fetchone(f"SELECT COUNT(*) AS n FROM gigs{where};", tuple(params))
        assert row is not None
        return int(row["n"])

    def existing_dedup_ids(self, user_id: str) -> set[str]:
        """All non-null ``external_dedup_id`` values already stored for a user."""
        rows = self.fetchall(
            "SELECT external_dedup_id FROM gigs "
            "WHERE user_id = ? AND external_dedup_id IS NOT NULL;",
            (user_id,),
        )
        return {row["external_dedup_id"] for row in rows}

    def apply_schedule(
        self,
        user_id: str,
        gig_ids: Iterable[str],
        at: Optional[datetime] = None,
    ) -> int:
        """Mark every listed gig ``selected`` as one atomic batch.

        Either all gigs move or none do.

        Args:
            user_id: Owner of the gigs.
            gig_ids: Gigs chosen by the selector.
            at:      Timestamp written to ``updated_at``.

        Returns:
            Number of gigs updated.

        Raises:
            GigNotFound:       If an id does not exist for ``user_id``.
            InvalidTransition: If a gig is not currently ``available``.
        """
        ids = list(dict.fromkeys(gig_ids))
        if not ids:
            return 0
        stamp = to_iso(at or utcnow())

        with self.savepoint("apply_schedule"):
            for gig_id in ids:
                row = self.fetchone(
                    "SELECT status FROM gigs WHERE gig_id = ? AND user_id = ?;",
                    (gig_id, user_id),
                )
                if row is None:
                    raise GigNotFound(f"Gig {gig_id} does not exist for user {user_id}.")
                if row["status"] != GigStatus.AVAILABLE.value:
                    raise InvalidTransition(
                        f"Gig {gig_id} is '{row['status']}', only available gigs can be selected."
                    )
                self.execute(
                    "UPDATE gigs SET status = ?, updated_at = ? "
                    "WHERE gig_id = ? AND status = ?;",
                    (GigStatus.SELECTED.value, stamp, gig_id, GigStatus.AVAILABLE.value),
                )

        logger.info("Marked %d gigs selected for user=%s", len(ids), user_id)
        return len(ids)


# ── Private helpers ───────────────────────────────────────────────────────────


def _gig_params(gig: Gig) -> tuple[object, ...]:
    return (
        gig.gig_id,
        gig.user_id,
        gig.source_id,
        gig.title,
        gig.description,
        gig.pay_base,
        gig.tip_expected,
        gig.pay_bonus,
        gig.location,
        gig.latitude,
        gig.longitude,
        gig.estimated_duration,
        gig.travel_distance,
        gig.travel_time,
        to_iso(gig.due_date),
        gig.priority.value,
        gig.score,
        gig.status.value,
        gig.external_dedup_id,
        to_iso(gig.created_at),
        to_iso(gig.updated_at),
        to_iso(gig.completed_at),
    )


def _row_to_gig(row: sqlite3.Row) -> Gig:
    """Convert a ``sqlite3.Row`` from ``gigs`` to a ``Gig``."""
    return Gig(
        gig_id=row["gig_id"],
        user_id=row["user_id"],
        source_id=row["source_id"],
        title=row["title"],
        description=row["description"],
        pay_base=row["pay_base"],
        tip_expected=row["tip_expected"],
        pay_bonus=row["pay_bonus"],
        location=row["location"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        estimated_duration=row["estimated_duration"],
        travel_distance=row["travel_distance"],
        travel_time=row["travel_time"],
        due_date=parse_iso_datetime(row["due_date"]),
        priority=PriorityTier(row["priority"]),
        score=row["score"],
        status=GigStatus(row["status"]),
        external_dedup_id=row["external_dedup_id"],
        created_at=parse_iso_datetime(row["created_at"]),
        updated_at=parse_iso_datetime(row["updated_at"]),
        completed_at=parse_iso_datetime(row["completed_at"]) if row["completed_at"] else None,
    )
