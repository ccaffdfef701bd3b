"""
Gig Planner — CLI entry point.

All commands follow this pattern:
  1. Load ``AppConfig`` via ``load_config()``.
  2. Configure logging.
  3. Validate inputs.
  4. Execute action (DB init, import, scoring, scheduling, analytics).
  5. Report result to stdout.

Engine input errors (bad record, bad budget, bad window, illegal status
change) are printed as ``[ERROR] <kind>: <message>`` with exit code 1.

Install and run::

    pip install -e .
    gig-planner --help
    gig-planner init-db
    gig-planner import-csv --file gigs.csv
    gig-planner score
    gig-planner schedule --hours 4 --apply
    gig-planner complete <gig-id>
    gig-planner earnings --days 7
    gig-planner forecast
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, Optional

import typer

app = typer.Typer(
    name="gig-planner",
    help="Gig Planner — score, schedule and track paid gigs from the terminal.",
    add_completion=False,
)


# ── Helpers ───────────────────────────────────────────────────────────────────

def _load_config_or_exit(config_path: Optional[str] = None):
    """Load AppConfig, printing a friendly error and exiting on failure."""
    from gig_planner.config import load_config

    try:
        cfg_path = Path(config_path) if config_path else None
        return load_config(cfg_path)
    except FileNotFoundError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)
    except Exception as exc:
        typer.echo(f"[ERROR] Config validation failed: {exc}", err=True)
        raise typer.Exit(code=1)


def _configure_logging(config):
    """Set up logging from config."""
    from gig_planner.utils.logging import configure_logging
    configure_logging(config.logging)


@contextmanager
def _open_repos(config) -> Generator[tuple, None, None]:
    """Yield ``(GigRepository, LedgerRepository)`` on a schema-ready connection."""
    from gig_planner.db.connection import get_connection
    from gig_planner.db.repositories.gig_repo import GigRepository
    from gig_planner.db.repositories.ledger_repo import LedgerRepository
    from gig_planner.db.schema import apply_schema

    with get_connection(
        config.database.db_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)
        yield GigRepository(conn), LedgerRepository(conn)


@contextmanager
def _engine_errors() -> Generator[None, None, None]:
    """Translate typed engine errors into an ``[ERROR]`` line and exit code 1."""
    from gig_planner.errors import GigPlannerError

    try:
        yield
    except GigPlannerError as exc:
        typer.echo(f"[ERROR] {exc.kind}: {exc.message}", err=True)
        raise typer.Exit(code=1)


def _parse_when(value: Optional[str], option: str) -> Optional[datetime]:
    from gig_planner.utils.time_utils import parse_iso_datetime

    if value is None:
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError:
        typer.echo(f"[ERROR] {option} must be an ISO 8601 datetime, got '{value}'.", err=True)
        raise typer.Exit(code=1)


_CONFIG_OPTION = typer.Option(None, "--config", help="Path to TOML config file.")
_USER_OPTION = typer.Option(
    None, "--user", "-u", help="User id (default: ingestion.default_user_id)."
)


# ── Setup ─────────────────────────────────────────────────────────────────────

@app.command("init-db")
def init_db(
    db_path: Optional[str] = typer.Option(
        None,
        "--db-path",
        help="Override DB path from config (e.g. data/db/test.db).",
    ),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Initialize the SQLite database and apply the schema.

    Safe to run multiple times — all DDL uses IF NOT EXISTS.
    """
    from gig_planner.db.connection import get_connection
    from gig_planner.db.schema import ALL_TABLE_NAMES, apply_schema

    config = _load_config_or_exit(config_path)
    _configure_logging(config)

    target_path = db_path or config.database.db_path
    typer.echo(f"Initializing database at: {target_path}")

    with get_connection(
        target_path,
        wal_mode=config.database.wal_mode,
        busy_timeout_ms=config.database.busy_timeout_ms,
    ) as conn:
        apply_schema(conn)

    typer.echo(f"  Tables: {len(ALL_TABLE_NAMES)} created/verified.")
    typer.echo("[OK] Database ready.")


@app.command("validate-config")
def validate_config(
    config_path: Optional[str] = typer.Option(
        None,
        "--config",
        help="Path to TOML config file (default: config/default.toml).",
    ),
    show_full: bool = typer.Option(
        False,
        "--full",
        help="Print full config including all fields.",
    ),
) -> None:
    """Validate the configuration file and print parsed values.

    Exits with code 1 if the config fails validation.
    """
    config = _load_config_or_exit(config_path)
    scoring = config.scoring

    typer.echo("Configuration validated successfully.")
    typer.echo("")
    typer.echo(f"  Database path:    {config.database.db_path}")
    typer.echo(f"  Mileage rate:     ${scoring.mileage_rate:.2f}/mile")
    typer.echo(f"  Hourly ceiling:   ${scoring.hourly_rate_ceiling:.2f}/h")
    typer.echo(
        f"  Score weights:    hourly={scoring.weight_hourly} travel={scoring.weight_travel} "
        f"urgency={scoring.weight_urgency} quick={scoring.weight_quick}"
    )
    typer.echo(f"  Tier thresholds:  high>={scoring.high_threshold} medium>={scoring.medium_threshold}")
    typer.echo(f"  Default hours:    {config.schedule.default_hours}")
    typer.echo(f"  Default user:     {config.ingestion.default_user_id}")
    typer.echo(f"  Log level:        {config.logging.level}")
    typer.echo(f"  Debug mode:       {config.debug}")

    if show_full:
        typer.echo("")
        typer.echo("Full config (JSON):")
        typer.echo(json.dumps(config.model_dump(), indent=2, default=str))

    typer.echo("")
    typer.echo("[OK] Config valid.")


# ── Gigs ──────────────────────────────────────────────────────────────────────

@app.command("import-csv")
def import_csv(
    csv_file: str = typer.Option(..., "--file", "-f", help="Path to the gig CSV file."),
    user_id: Optional[str] = _USER_OPTION,
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Validate rows but do not write to the database.",
    ),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Import gigs from a CSV file, scoring each before it is stored.

    \b
    Required columns: title, location, pay_base, due_date
    Rows whose external_dedup_id was already imported are skipped, as are
    rows with status 'expired'.
    """
    from gig_planner.ingestion.gig_csv import parse_gig_csv
    from gig_planner.ingestion.importer import import_gigs

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id

    csv_path = Path(csv_file)
    typer.echo(f"Loading gigs from: {csv_path}")
    try:
        parsed = parse_gig_csv(
            csv_path,
            user_id=user,
            default_source_id=config.ingestion.default_source_id,
            default_duration=config.ingestion.default_duration_minutes,
        )
    except (FileNotFoundError, ValueError) as exc:
        typer.echo(f"[ERROR] CSV parse failed:\n{exc}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"  Validated {len(parsed)} gig(s).")

    if dry_run:
        typer.echo("[DRY RUN] No gigs written to database.")
        for gig in parsed:
            typer.echo(f"  {gig.title} | {gig.source_id} | ${gig.total_pay:.2f} | {gig.due_date:%Y-%m-%d %H:%M}")
        return

    with _open_repos(config) as (gig_repo, _):
        result = import_gigs(gig_repo, user, parsed, scoring_config=config.scoring)

    typer.echo(f"  Imported: {len(result.imported)}")
    typer.echo(f"  Skipped:  {len(result.skipped)}")
    for title, reason in result.skipped:
        typer.echo(f"    - {title}: {reason}")
    if result.errors:
        typer.echo(f"  Errors:   {len(result.errors)}", err=True)
        for title, message in result.errors:
            typer.echo(f"    - {title}: {message}", err=True)
    typer.echo("[OK] Import finished.")


@app.command("list")
def list_gigs(
    user_id: Optional[str] = _USER_OPTION,
    status: Optional[str] = typer.Option(
        None, "--status", help="Filter: available, selected, completed, expired."
    ),
    priority: Optional[str] = typer.Option(None, "--priority", help="Filter: high, medium, low."),
    source_id: Optional[str] = typer.Option(None, "--source", help="Filter by platform."),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """List stored gigs, newest first."""
    from gig_planner.reporting.formatters import format_gig_table
    from gig_planner.taxonomy.gig_taxonomy import GigStatus, PriorityTier

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id

    try:
        status_filter = GigStatus(status) if status else None
        priority_filter = PriorityTier(priority) if priority else None
    except ValueError as exc:
        typer.echo(f"[ERROR] {exc}", err=True)
        raise typer.Exit(code=1)

    with _open_repos(config) as (gig_repo, _):
        gigs = gig_repo.list(user, status=status_filter, priority=priority_filter, source_id=source_id)

    typer.echo(format_gig_table(gigs))


@app.command("score")
def score(
    user_id: Optional[str] = _USER_OPTION,
    explain: bool = typer.Option(False, "--explain", help="Print the reasoning for each score."),
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Re-score every open (available or selected) gig and store the results."""
    from gig_planner.engine.scorer import build_reasoning, compute_score
    from gig_planner.reporting.formatters import format_gig_table
    from gig_planner.services import rescore_gigs
    from gig_planner.utils.time_utils import utcnow

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id
    now = utcnow()

    with _engine_errors(), _open_repos(config) as (gig_repo, _):
        rescored = rescore_gigs(gig_repo, user, config=config.scoring, now=now)

    ranked = sorted(rescored, key=lambda g: (-(g.score or 0), g.total_minutes, g.gig_id))
    typer.echo(format_gig_table(ranked, title="Scored gigs"))

    if explain:
        typer.echo("")
        for gig in ranked:
            reasoning = build_reasoning(compute_score(gig, now, config.scoring))
            typer.echo(f"  {gig.score:>3}  {gig.title}: {reasoning}")


@app.command("schedule")
def schedule(
    hours: Optional[float] = typer.Option(
        None, "--hours", help="Hours available (default: schedule.default_hours)."
    ),
    apply: bool = typer.Option(
        False, "--apply", help="Mark the chosen gigs as selected in the database."
    ),
    user_id: Optional[str] = _USER_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Pick the best available gigs that fit in the hours budget."""
    from gig_planner.engine.selector import project_schedule_earnings
    from gig_planner.reporting.formatters import format_schedule
    from gig_planner.services import plan_schedule

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id
    budget = hours if hours is not None else config.schedule.default_hours

    with _engine_errors(), _open_repos(config) as (gig_repo, _):
        plan = plan_schedule(gig_repo, user, budget, config=config.scoring, apply=apply)

    earnings = project_schedule_earnings(plan.selected, config.scoring.mileage_rate)
    typer.echo(format_schedule(plan.selected, earnings, plan.budget_minutes, applied=apply))


@app.command("complete")
def complete(
    gig_id: str = typer.Argument(..., help="Id of a selected gig."),
    user_id: Optional[str] = _USER_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Mark a selected gig as completed."""
    from gig_planner.services import complete_gig

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id

    with _engine_errors(), _open_repos(config) as (gig_repo, _):
        gig = complete_gig(gig_repo, user, gig_id)

    typer.echo(f"[OK] '{gig.title}' completed at {gig.completion_time:%Y-%m-%d %H:%M} UTC.")


@app.command("expire")
def expire(
    gig_id: str = typer.Argument(..., help="Id of an available or selected gig."),
    user_id: Optional[str] = _USER_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Mark a gig as expired (cancelled or past due)."""
    from gig_planner.services import expire_gig

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id

    with _engine_errors(), _open_repos(config) as (gig_repo, _):
        gig = expire_gig(gig_repo, user, gig_id)

    typer.echo(f"[OK] '{gig.title}' expired.")


# ── Ledger ────────────────────────────────────────────────────────────────────

@app.command("add-ledger")
def add_ledger(
    entry_type: str = typer.Option(..., "--type", help="earning or expense."),
    amount: float = typer.Option(..., "--amount", help="Non-negative amount."),
    category: str = typer.Option(..., "--category", help="e.g. payment, tip, fuel, mileage."),
    description: Optional[str] = typer.Option(None, "--description", help="Optional note."),
    gig_id: Optional[str] = typer.Option(None, "--gig", help="Related gig id."),
    when: Optional[str] = typer.Option(
        None, "--date", help="Transaction time, ISO 8601 (default: now)."
    ),
    status: str = typer.Option("pending", "--status", help="pending, processing or paid."),
    user_id: Optional[str] = _USER_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Record an earning or expense in the ledger."""
    from pydantic import ValidationError

    from gig_planner.models.ledger import LedgerEntry
    from gig_planner.utils.time_utils import utcnow

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id

    try:
        entry = LedgerEntry(
            user_id=user,
            gig_id=gig_id,
            entry_type=entry_type,
            category=category,
            amount=amount,
            description=description,
            transaction_date=_parse_when(when, "--date") or utcnow(),
            status=status,
        )
    except ValidationError as exc:
        typer.echo(f"[ERROR] Invalid ledger entry: {exc}", err=True)
        raise typer.Exit(code=1)

    with _open_repos(config) as (gig_repo, ledger_repo):
        if gig_id is not None and gig_repo.get_by_id(gig_id, user_id=user) is None:
            typer.echo(f"[ERROR] not_found: Gig {gig_id} does not exist for user {user}.", err=True)
            raise typer.Exit(code=1)
        ledger_repo.insert(entry)

    typer.echo(f"[OK] Recorded {entry.entry_type.value} of ${entry.amount:.2f} ({entry.entry_id}).")


@app.command("payments")
def payments(
    user_id: Optional[str] = _USER_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Show ledger earnings grouped by settlement status."""
    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id

    with _open_repos(config) as (_, ledger_repo):
        totals = ledger_repo.status_totals(user)

    typer.echo("")
    typer.echo("=== Payments by status ===")
    for status, total in totals.items():
        typer.echo(f"  {status.value:<11} ${total:,.2f}")
    typer.echo(f"  {'total':<11} ${sum(totals.values()):,.2f}")


# ── Analytics ─────────────────────────────────────────────────────────────────

@app.command("earnings")
def earnings(
    days: Optional[int] = typer.Option(
        None, "--days", help="Trailing window in days (default: analytics.weekly_window_days)."
    ),
    start: Optional[str] = typer.Option(None, "--start", help="Window start, ISO 8601."),
    end: Optional[str] = typer.Option(None, "--end", help="Window end, ISO 8601 (default: now)."),
    user_id: Optional[str] = _USER_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Summarise earnings, expenses and rates over a window."""
    from datetime import timedelta

    from gig_planner.reporting.formatters import format_earnings_summary
    from gig_planner.services import earnings_report
    from gig_planner.utils.time_utils import utcnow

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id

    window_end = _parse_when(end, "--end") or utcnow()
    window_start = _parse_when(start, "--start")
    if window_start is None:
        window_days = days if days is not None else config.analytics.weekly_window_days
        window_start = window_end - timedelta(days=window_days)

    with _engine_errors(), _open_repos(config) as (gig_repo, ledger_repo):
        summary = earnings_report(
            gig_repo, ledger_repo, user, window_start, window_end, config=config.analytics
        )

    typer.echo(format_earnings_summary(summary))


@app.command("breakdown")
def breakdown(
    group_by: str = typer.Option("day", "--by", help="day, week (Sunday start) or month."),
    user_id: Optional[str] = _USER_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Completed-gig earnings grouped by day, week or month."""
    from gig_planner.reporting.formatters import format_breakdown
    from gig_planner.services import breakdown_report
    from gig_planner.taxonomy.gig_taxonomy import BreakdownPeriod

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id

    try:
        period = BreakdownPeriod(group_by)
    except ValueError:
        typer.echo(f"[ERROR] --by must be one of day, week, month; got '{group_by}'.", err=True)
        raise typer.Exit(code=1)

    with _open_repos(config) as (gig_repo, _):
        rows = breakdown_report(gig_repo, user, period)

    typer.echo(format_breakdown(rows, period.value))


@app.command("forecast")
def forecast(
    user_id: Optional[str] = _USER_OPTION,
    config_path: Optional[str] = _CONFIG_OPTION,
) -> None:
    """Project earnings from the last 7 days against the last 30."""
    from gig_planner.reporting.formatters import format_projection
    from gig_planner.services import earnings_forecast
    from gig_planner.taxonomy.gig_taxonomy import GigStatus

    config = _load_config_or_exit(config_path)
    _configure_logging(config)
    user = user_id or config.ingestion.default_user_id

    with _engine_errors(), _open_repos(config) as (gig_repo, ledger_repo):
        projection = earnings_forecast(gig_repo, ledger_repo, user, config=config.analytics)
        lifetime = gig_repo.count(user, status=GigStatus.COMPLETED)

    typer.echo(format_projection(projection, lifetime_completed=lifetime))


if __name__ == "__main__":
    app()
