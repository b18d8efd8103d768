"""Logging setup shared by the scheduling engines and the HTTP layer.

Engines log one line per run (start, completion, failure, overflow) as
pipe-separated ``key=value`` fields, so a single run of the date search or
a seating pass can be followed with a plain ``grep`` on ``exam_date=`` or
``failed_unit=``.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from examplanner.utils.config import get_settings


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_CONFIGURED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Install the stdout handler once per process.

    ``level`` overrides ``Settings.log_level`` (env ``LOG_LEVEL``); later
    calls are no-ops so importing engine modules in any order is safe.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    resolved_level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=resolved_level, format=LOG_FORMAT, stream=sys.stdout)
    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return the named logger for an ``examplanner`` module."""
    configure_logging()
    return logging.getLogger(name)
