"""
CSV import parser for gig records.

Format — comma delimited, with a header row. Headers may be snake_case
(``pay_base``) or camelCase (``payBase``), as exported by gig platforms.

Required columns:
  title, location, pay_base, due_date

Optional columns (empty string → default):
  source_id          → ``default_source_id``
  description        → None
  tip_expected       → 0
  pay_bonus          → 0
  latitude/longitude → None
  estimated_duration → ``default_duration`` (also when not an integer)
  travel_distance    → None
  travel_time        → None (also when not an integer)
  external_dedup_id  → None
  status             → available; only `available` or `expired` (a
                       cancellation notice) are accepted

Date format:
  due_date → ISO 8601, e.g. ``2025-06-01T18:00:00Z``; naive values are UTC.
"""

from __future__ import annotations

import csv
import logging
import math
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from gig_planner.models.gig import Gig
from gig_planner.taxonomy.gig_taxonomy import GigStatus
from gig_planner.utils.time_utils import parse_iso_datetime

logger = logging.getLogger(__name__)

REQUIRED_CSV_COLUMNS = frozenset({"title", "location", "pay_base", "due_date"})

# `expired` rows are cancellation notices; the importer skips them.
_IMPORTABLE_STATUSES = frozenset({GigStatus.AVAILABLE, GigStatus.EXPIRED})

_COLUMN_ALIASES = {
    "sourceId": "source_id",
    "payBase": "pay_base",
    "tipExpected": "tip_expected",
    "payBonus": "pay_bonus",
    "estimatedDuration": "estimated_duration",
    "travelDistance": "travel_distance",
    "travelTime": "travel_time",
    "dueDate": "due_date",
    "externalDedupId": "external_dedup_id",
    "emailMessageId": "external_dedup_id",
}

_MAX_ERRORS_SHOWN = 10


def parse_gig_csv(
    path: Path,
    user_id: str,
    default_source_id: str = "csv-import",
    default_duration: int = 60,
) -> list[Gig]:
    """Parse a CSV file of gigs into validated, unscored :class:`Gig` objects.

    All rows are validated before any are returned. If **any** row fails,
    a single :class:`ValueError` is raised listing the first 10 failures.

    Args:
        path:              Path to the CSV file (must exist).
        user_id:           Owner assigned to every parsed gig.
        default_source_id: Platform used when ``source_id`` is empty.
        default_duration:  Minutes used when ``estimated_duration`` is empty
                           or not an integer.

    Returns:
        List of validated :class:`Gig` instances in file order.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If required columns are missing or any row fails validation.
    """
    if not path.exists():
        raise FileNotFoundError(f"Gig CSV file not found: {path}")

    with open(path, encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)

        if reader.fieldnames is None:
            raise ValueError(f"CSV file is empty or has no header row: {path}")

        actual_cols = {_canonical(name) for name in reader.fieldnames}
        missing = REQUIRED_CSV_COLUMNS - actual_cols
        if missing:
            raise ValueError(
                f"CSV missing required columns: {sorted(missing)}\n"
                f"Found columns: {sorted(actual_cols)}"
            )

        rows = [
            {_canonical(k): (v or "") for k, v in raw.items() if k is not None}
            for raw in reader
        ]

    if not rows:
        logger.warning("Gig CSV is empty (header only): %s", path)
        return []

    gigs: list[Gig] = []
    errors: list[tuple[int, str]] = []

    for i, row in enumerate(rows):
        line_no = i + 2  # 1-based, skip header row
        try:
            gigs.append(_row_to_gig(row, user_id, default_source_id, default_duration))
        except (ValueError, ValidationError) as exc:
            errors.append((line_no, str(exc)))

    if errors:
        detail = "\n".join(f"  Row {ln}: {msg}" for ln, msg in errors[:_MAX_ERRORS_SHOWN])
        extra = len(errors) - _MAX_ERRORS_SHOWN
        suffix = f"\n  … and {extra} more" if extra > 0 else ""
        raise ValueError(
            f"{len(errors)} row(s) failed validation in {path.name}:\n{detail}{suffix}"
        )

    logger.info("Parsed %d gigs from %s", len(gigs), path.name)
    return gigs


# ── Private helpers ────────────────────────────────────────────────────────────

def _canonical(column: str) -> str:
    name = column.strip()
    return _COLUMN_ALIASES.get(name, name)


def _row_to_gig(
    row: dict[str, str],
    user_id: str,
    default_source_id: str,
    default_duration: int,
) -> Gig:
    """Convert a CSV row dict to a validated :class:`Gig`.

    Raises:
        ValueError: On bad numbers, dates, or missing required fields.
        pydantic.ValidationError: On model-level validation failure.
    """
    return Gig(
        user_id=user_id,
        source_id=_opt(row, "source_id") or default_source_id,
        title=_req(row, "title"),
        description=_opt(row, "description"),
        pay_base=_parse_float(row, "pay_base", required=True),
        tip_expected=_parse_float(row, "tip_expected") or 0.0,
        pay_bonus=_parse_float(row, "pay_bonus") or 0.0,
        location=_req(row, "location"),
        latitude=_parse_float(row, "latitude"),
        longitude=_parse_float(row, "longitude"),
        estimated_duration=_lenient_int(row, "estimated_duration", default_duration),
        travel_distance=_parse_float(row, "travel_distance"),
        travel_time=_lenient_int(row, "travel_time"),
        due_date=_parse_datetime(row, "due_date"),
        status=_parse_status(row),
        external_dedup_id=_opt(row, "external_dedup_id"),
    )


def _req(row: dict[str, str], key: str) -> str:
    """Return a required string field, stripped; raise if empty."""
    v = row.get(key, "").strip()
    if not v:
        raise ValueError(f"Required field '{key}' is empty.")
    return v


def _opt(row: dict[str, str], key: str) -> Optional[str]:
    """Return an optional string field, or None if absent/empty."""
    v = row.get(key, "").strip()
    return v if v else None


def _parse_float(row: dict[str, str], key: str, required: bool = False) -> Optional[float]:
    v = _opt(row, key)
    if v is None:
        if required:
            raise ValueError(f"Required numeric field '{key}' is empty.")
        return None
    try:
        value = float(v.lstrip("$"))
    except ValueError:
        raise ValueError(f"Invalid number for '{key}': '{v}'.")
    if not math.isfinite(value):
        raise ValueError(f"Invalid number for '{key}': '{v}' is not finite.")
    return value


def _lenient_int(
    row: dict[str, str], key: str, default: Optional[int] = None
) -> Optional[int]:
    """Integer field that degrades to ``default`` when empty or unparsable."""
    v = _opt(row, key)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        logger.debug("Ignoring non-integer %s value %r", key, v)
        return default


def _parse_datetime(row: dict[str, str], key: str) -> datetime:
    v = _req(row, key)
    try:
        return parse_iso_datetime(v)
    except ValueError:
        raise ValueError(
            f"Invalid datetime for '{key}': '{v}'. "
            "Expected ISO 8601, e.g. '2025-06-01T18:00:00Z'."
        )


def _parse_status(row: dict[str, str]) -> GigStatus:
    raw = _opt(row, "status")
    if raw is None:
        return GigStatus.AVAILABLE
    try:
        status = GigStatus(raw.lower())
    except ValueError:
        valid = sorted(s.value for s in _IMPORTABLE_STATUSES)
        raise ValueError(f"Invalid status value '{raw}'. Valid values: {valid}")
    if status not in _IMPORTABLE_STATUSES:
        raise ValueError(
            f"Status '{status.value}' cannot be imported; new gigs start as 'available'."
        )
    return status
