"""
End-to-end tests for the ``gig-planner`` CLI using Typer's CliRunner.

Each test points the CLI at a throwaway config whose database and log file
live under ``tmp_path``.
"""

from __future__ import annotations

import re
from pathlib import Path

import pytest
from typer.testing import CliRunner

from gig_planner.cli import app

runner = CliRunner()

GIGS_CSV = (
    "title,location,pay_base,due_date,estimated_duration,travel_time,external_dedup_id\n"
    "Lunch rush,Downtown,45,2099-01-01T12:00:00Z,120,0,msg-1\n"
    "Pharmacy run,Uptown,20,2099-01-01T12:00:00Z,90,0,msg-2\n"
)


@pytest.fixture
def config_file(tmp_path: Path, monkeypatch) -> Path:
    for name in (
        "GIG_PLANNER_DB_PATH", "GIG_PLANNER_LOG_LEVEL", "GIG_PLANNER_MILEAGE_RATE", "GIG_PLANNER_DEBUG",
    ):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "app.toml"
    path.write_text(
        "[database]\n"
        f'db_path = "{(tmp_path / "gigs.db").as_posix()}"\n'
        "[logging]\n"
        'level = "WARNING"\n'
        f'log_file = "{(tmp_path / "gig_planner.log").as_posix()}"\n'
        "[ingestion]\n"
        'default_user_id = "cli-user"\n',
        encoding="utf-8",
    )
    return path


def _run(config_file: Path, *args: str):
    return runner.invoke(app, [*args, "--config", str(config_file)])


def _import(config_file: Path, tmp_path: Path):
    csv_path = tmp_path / "gigs.csv"
    csv_path.write_text(GIGS_CSV, encoding="utf-8")
    return _run(config_file, "import-csv", "--file", str(csv_path))


class TestSetupCommands:
    def test_init_db(self, config_file):
        result = _run(config_file, "init-db")
        assert result.exit_code == 0, result.output
        assert "[OK] Database ready." in result.output

    def test_validate_config(self, config_file):
        result = _run(config_file, "validate-config")
        assert result.exit_code == 0, result.output
        assert "Mileage rate:     $0.67/mile" in result.output

    def test_missing_config(self, tmp_path):
        result = runner.invoke(app, ["validate-config", "--config", str(tmp_path / "nope.toml")])
        assert result.exit_code == 1


class TestGigCommands:
    def test_import_then_reimport_skips(self, config_file, tmp_path):
        first = _import(config_file, tmp_path)
        assert first.exit_code == 0, first.output
        assert "Imported: 2" in first.output

        second = _import(config_file, tmp_path)
        assert "Imported: 0" in second.output
        assert "Already imported" in second.output

    def test_schedule_apply_and_complete(self, config_file, tmp_path):
        _import(config_file, tmp_path)

        plan = _run(config_file, "schedule", "--hours", "3", "--apply")
        assert plan.exit_code == 0, plan.output
        assert "Lunch rush" in plan.output
        assert "Pharmacy run" not in plan.output
        assert "[APPLIED] 1 gig(s) marked selected." in plan.output

        listing = _run(config_file, "list", "--status", "selected")
        gig_id = re.search(r"id: (\S+)", listing.output).group(1)

        done = _run(config_file, "complete", gig_id)
        assert done.exit_code == 0, done.output
        assert "completed at" in done.output

    def test_schedule_rejects_zero_budget(self, config_file):
        result = _run(config_file, "schedule", "--hours", "0")
        assert result.exit_code == 1
        assert "[ERROR] invalid_budget:" in result.output

    def test_complete_unknown_gig(self, config_file):
        result = _run(config_file, "complete", "does-not-exist")
        assert result.exit_code == 1
        assert "[ERROR] not_found:" in result.output

    def test_complete_available_gig_rejected(self, config_file, tmp_path):
        _import(config_file, tmp_path)
        listing = _run(config_file, "list")
        gig_id = re.search(r"id: (\S+)", listing.output).group(1)
        result = _run(config_file, "complete", gig_id)
        assert result.exit_code == 1
        assert "[ERROR] invalid_transition:" in result.output

    def test_score_explain(self, config_file, tmp_path):
        _import(config_file, tmp_path)
        result = _run(config_file, "score", "--explain")
        assert result.exit_code == 0, result.output
        assert "Scored gigs (2)" in result.output


class TestLedgerAndAnalytics:
    def test_add_ledger_and_payments(self, config_file):
        added = _run(
            config_file, "add-ledger", "--type", "earning", "--amount", "12.5",
            "--category", "tip", "--status", "paid",
        )
        assert added.exit_code == 0, added.output

        totals = _run(config_file, "payments")
        assert "paid" in totals.output
        assert "$12.50" in totals.output

    def test_add_ledger_rejects_negative(self, config_file):
        result = _run(
            config_file, "add-ledger", "--type", "expense", "--amount=-3", "--category", "fuel",
        )
        assert result.exit_code == 1

    def test_earnings_empty(self, config_file):
        result = _run(config_file, "earnings", "--days", "7")
        assert result.exit_code == 0, result.output
        assert "Net income:       $0.00" in result.output

    def test_earnings_invalid_range(self, config_file):
        result = _run(
            config_file, "earnings",
            "--start", "2025-06-10T00:00:00Z", "--end", "2025-06-01T00:00:00Z",
        )
        assert result.exit_code == 1
        assert "[ERROR] invalid_range:" in result.output

    def test_breakdown_rejects_unknown_period(self, config_file):
        result = _run(config_file, "breakdown", "--by", "year")
        assert result.exit_code == 1

    def test_forecast_without_history(self, config_file):
        result = _run(config_file, "forecast")
        assert result.exit_code == 0, result.output
        assert "Variance:              +0.0%" in result.output
        assert "Confidence:            low" in result.output
