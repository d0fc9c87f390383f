# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Root logger setup for the crate-sweep CLI.

Diagnostics go to stderr through :mod:`logging`; the ``Testing in`` transcript
is program output and is printed to stdout by :mod:`crate_sweep.sweep`.

Two formats are available: ``dev`` (timestamp, level, logger name) and
``json`` (one object per line, for CI log collectors).
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional, Union

DEV_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEV_DATEFMT = "%H:%M:%S"


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def resolve_level(level: Union[int, str, None]) -> int:
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    if isinstance(level, int):
        return level
    resolved = getattr(logging, level.upper(), None)
    if not isinstance(resolved, int):
        print(f"[crate-sweep] invalid LOG_LEVEL {level!r}, falling back to INFO", file=sys.stderr)
        return logging.INFO
    return resolved


def setup_logging(fmt: Optional[str] = None, level: Union[int, str, None] = None) -> None:
    fmt = fmt or os.environ.get("LOG_FORMAT", "dev")
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(DEV_FORMAT, datefmt=DEV_DATEFMT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(resolve_level(level))
