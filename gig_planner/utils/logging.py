"""
Logging setup for gig-planner.

The CLI calls ``configure_logging(config.logging)`` once per command, before
opening the database. Library modules only ever do::

    logger = logging.getLogger(__name__)

Records go to stderr so that tables printed on stdout can be piped. With
``[logging] log_file`` set they are also appended to that file, and with
``json_format = true`` every line is a JSON object::

    {"ts": "2025-06-04T12:00:00Z", "level": "INFO", "logger": "gig_planner.services",
     "msg": "Rescored 4 gigs for user=user-1 (2 changed)", "user_id": "user-1"}

Keys passed through ``extra=`` (``user_id``, ``gig_id`` ...) appear at the top
level of the JSON object.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from gig_planner.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Attributes every LogRecord carries; anything else came in via ``extra=``.
_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg`` plus extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
                LOG_DATE_FORMAT
            ),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        payload.update(
            (key, val)
            for key, val in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
        )
        return json.dumps(payload, default=str)


def _formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return _JsonFormatter()
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def _file_handler(log_file: str) -> Optional[logging.Handler]:
    # An empty path disables file logging (used by tests and one-off runs).
    if not log_file:
        return None
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8")


def configure_logging(config: "LoggingConfig") -> None:
    """Install stderr (and optional file) handlers on the root logger.

    Safe to call repeatedly: existing root handlers are replaced, which keeps
    consecutive CLI invocations in one process (e.g. under ``CliRunner``)
    from stacking duplicate handlers.

    Args:
        config: ``[logging]`` section of ``AppConfig``.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)
    formatter = _formatter(config.json_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_handler = _file_handler(config.log_file)
    if file_handler is not None:
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
