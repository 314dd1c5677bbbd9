#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/logging_config.py
# Purpose: Centralized logging setup (rotating file, redaction, levels)
#
# Description of code and how it works:
# - Creates a TimedRotatingFileHandler (daily) + console handler on the
#   "trafficnews" logger.
# - Redacts the DATABASE_URL password if it ever appears in a record.
# - Respects env: TRAFFICNEWS_LOG_DIR, TRAFFICNEWS_LOG_FILE, TRAFFICNEWS_LOG_LEVEL.
#
# Author: TrafficNews Team
# Created: 2026-10-06
#
# Version: 1.1.0
# Last Modified: 2026-10-14 by TrafficNews Team
#
# Revision History:
# - 1.1.0 (2026-10-14): Redact DB password instead of API key; idempotent setup.
# - 1.0.0 (2026-10-06): Initial logging bundle.
###################################################################
#
from __future__ import annotations

import logging
import os
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

LOGGER_NAME = "trafficnews"


def _ensure_dir(p: Path) -> None:
    p.mkdir(parents=True, exist_ok=True)


def _db_password(url: Optional[str]) -> str:
    if not url:
        return ""
    try:
        return urlsplit(url).password or ""
    except ValueError:
        return ""


class _RedactFilter(logging.Filter):
    def __init__(self, secret: Optional[str]):
        super().__init__()
        self.secret = secret or ""

    def _scrub(self, v):
        if isinstance(v, str) and self.secret in v:
            return v.replace(self.secret, "***")
        return v

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.secret:
            return True
        if isinstance(record.msg, str) and self.secret in record.msg:
            record.msg = record.msg.replace(self.secret, "***")
        if isinstance(record.args, dict):
            record.args = {k: self._scrub(v) for k, v in record.args.items()}
        elif isinstance(record.args, tuple):
            record.args = tuple(self._scrub(v) for v in record.args)
        return True


def setup_logging() -> logging.Logger:
    project_root = Path(__file__).resolve().parents[1]
    log_dir = Path(os.getenv("TRAFFICNEWS_LOG_DIR", project_root / "logs"))
    _ensure_dir(log_dir)
    log_file = Path(os.getenv("TRAFFICNEWS_LOG_FILE", log_dir / "trafficnews_app.log"))

    level_name = os.getenv("TRAFFICNEWS_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False  # don't double-log to root

    # uvicorn --reload imports twice
    if logger.handlers:
        return logger

    fmt = logging.Formatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S%z",
    )
    redact_filter = _RedactFilter(_db_password(os.getenv("DATABASE_URL")))

    # File handler: rotate at midnight, keep 7 days
    fh = TimedRotatingFileHandler(str(log_file), when="midnight", backupCount=7, encoding="utf-8")
    fh.setLevel(level)
    fh.setFormatter(fmt)
    fh.addFilter(redact_filter)
    logger.addHandler(fh)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(redact_filter)
    logger.addHandler(ch)

    logger.info("Logging initialized at %s (file=%s)", level_name, log_file)
    return logger
