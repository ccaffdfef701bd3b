"""
SQLite connection management.

``get_connection()`` yields a connection that:
  - Enforces foreign keys (OFF by default in SQLite).
  - Uses WAL journal mode so analytics reads do not block imports.
  - Waits ``busy_timeout_ms`` on lock contention before failing.
  - Returns ``sqlite3.Row`` rows (dict-like access).
  - Commits on clean exit, rolls back on exception.

Usage::

    from gig_planner.db.connection import get_connection

    with get_connection("data/db/gig_planner.db") as conn:
        GigRepository(conn).insert(gig)
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

logger = logging.getLogger(__name__)


@contextmanager
def get_connection(
    db_path: str,
    wal_mode: bool = True,
    busy_timeout_ms: int = 5000,
) -> Generator[sqlite3.Connection, None, None]:
    """Context manager yielding a configured SQLite connection.

    Parent directories of ``db_path`` are created on demand.

    Args:
        db_path: Database file path, or ``":memory:"`` for tests.
        wal_mode: Enable WAL journal mode.
        busy_timeout_ms: Lock wait before ``OperationalError``.

    Yields:
        An open ``sqlite3.Connection``.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path, timeout=busy_timeout_ms / 1000)
    conn.row_factory = sqlite3.Row

    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)};")
        if wal_mode and db_path != ":memory:":
            conn.execute("PRAGMA journal_mode = WAL;")

        yield conn
        conn.commit()

    except Exception:
        logger.debug("Rolling back transaction on %s", db_path)
        conn.rollback()
        raise

    finally:
        conn.close()
