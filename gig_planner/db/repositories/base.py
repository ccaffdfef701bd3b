"""
Base repository providing shared SQLite execution helpers.

Repositories receive an open ``sqlite3.Connection`` (usually from
``get_connection()``), speak pydantic models rather than raw dicts, and keep
all SQL explicit. No ORM.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from typing import Any, Generator, Optional

logger = logging.getLogger(__name__)

Params = tuple[Any, ...] | dict[str, Any]


class BaseRepository:
    """Shared SQL execution helpers for all repository classes.

    Attributes:
        conn: The active ``sqlite3.Connection``.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        """Execute a single SQL statement."""
        logger.debug("SQL: %s | params: %s", sql.strip(), params)
        return self.conn.execute(sql, params)

    def fetchone(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        """Execute a query and return the first row, or ``None``."""
        return self.execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: Params = ()) -> list[sqlite3.Row]:
        """Execute a query and return all rows."""
        return self.execute(sql, params).fetchall()

    @contextmanager
    def savepoint(self, name: str) -> Generator[None, None, None]:
        """Run a block atomically inside a SQLite SAVEPOINT.

        Nested inside the connection's outer transaction: on error only the
        block's writes are rolled back and the exception propagates.
        """
        self.conn.execute(f"SAVEPOINT {name};")
        try:
            yield
        except Exception:
            self.conn.execute(f"ROLLBACK TO SAVEPOINT {name};")
            self.conn.execute(f"RELEASE SAVEPOINT {name};")
            raise
        else:
            self.conn.execute(f"RELEASE SAVEPOINT {name};")
