"""Tests for SQLite schema — idempotency, table/index creation, constraints."""

from __future__ import annotations

import sqlite3

import pytest

from gig_planner.db.connection import get_connection
from gig_planner.db.schema import (
    ALL_TABLE_NAMES,
    apply_schema,
    get_existing_indexes,
    get_existing_tables,
)


class TestApplySchema:
    def test_all_tables_created(self, in_memory_db):
        tables = get_existing_tables(in_memory_db)
        for expected_table in ALL_TABLE_NAMES:
            assert expected_table in tables, (
                f"Expected table '{expected_table}' not found in database. "
                f"Found: {tables}"
            )

    def test_idempotent_double_apply(self, in_memory_db):
        """apply_schema() called twice must not raise errors."""
        apply_schema(in_memory_db)
        assert sorted(get_existing_tables(in_memory_db)) == sorted(ALL_TABLE_NAMES)

    def test_key_indexes_created(self, in_memory_db):
        indexes = get_existing_indexes(in_memory_db)
        for idx in ("idx_gigs_user_status", "idx_gigs_user_dedup", "idx_ledger_user_date"):
            assert idx in indexes, f"Expected index '{idx}' not found. Found: {indexes}"


class TestConstraints:
    def _insert_gig(self, conn, gig_id="g1", dedup=None, status="available", duration=30):
        conn.execute(
            """
            INSERT INTO gigs (
                gig_id, user_id, source_id, title, pay_base, location,
                estimated_duration, due_date, status, external_dedup_id,
                created_at, updated_at
            ) VALUES (?, 'u1', 'src', 't', 10, 'loc', ?, '2025-06-01T00:00:00.000000+00:00',
                      ?, ?, '2025-06-01T00:00:00.000000+00:00', '2025-06-01T00:00:00.000000+00:00');
            """,
            (gig_id, duration, status, dedup),
        )

    def test_dedup_id_unique_per_user(self, in_memory_db):
        self._insert_gig(in_memory_db, "g1", dedup="msg-1")
        with pytest.raises(sqlite3.IntegrityError):
            self._insert_gig(in_memory_db, "g2", dedup="msg-1")

    def test_null_dedup_ids_not_unique(self, in_memory_db):
        self._insert_gig(in_memory_db, "g1")
        self._insert_gig(in_memory_db, "g2")

    def test_status_check(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            self._insert_gig(in_memory_db, status="archived")

    def test_duration_check(self, in_memory_db):
        with pytest.raises(sqlite3.IntegrityError):
            self._insert_gig(in_memory_db, duration=0)


class TestConnection:
    def test_fk_enforcement_is_on(self, tmp_path):
        with get_connection(str(tmp_path / "db" / "test.db")) as conn:
            row = conn.execute("PRAGMA foreign_keys;").fetchone()
        assert row[0] == 1

    def test_commits_on_success(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        with get_connection(db_path) as conn:
            apply_schema(conn)
        with get_connection(db_path) as conn:
            assert sorted(get_existing_tables(conn)) == sorted(ALL_TABLE_NAMES)

    def test_rolls_back_on_error(self, tmp_path):
        db_path = str(tmp_path / "test.db")
        with get_connection(db_path) as conn:
            apply_schema(conn)

        with pytest.raises(RuntimeError):
            with get_connection(db_path) as conn:
                conn.execute(
                    "INSERT INTO ledger_entries (entry_id, user_id, entry_type, category, "
                    "amount, transaction_date, created_at) "
                    "VALUES ('e1', 'u1', 'earning', 'payment', 5, 'x', 'x');"
                )
                raise RuntimeError("boom")

        with get_connection(db_path) as conn:
            row = conn.execute("SELECT COUNT(*) AS n FROM ledger_entries;").fetchone()
        assert row["n"] == 0
