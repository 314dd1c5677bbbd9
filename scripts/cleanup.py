#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: scripts/cleanup.py
# Purpose: Prune terminal (sent/failed) submissions older than N days.
#
# Description of code and how it works:
# - Manual operator action; nothing schedules it.
# - Pending submissions are never touched.
# - --dry-run reports what would be removed.
#
# Author: TrafficNews Team
# Created: 2026-10-17
#
# Version: 0.1.0
# Last Modified: 2026-10-17 by TrafficNews Team
#
# Revision History:
# - 0.1.0 (2026-10-17): Initial version.
###################################################################
#
import argparse
import logging
from datetime import datetime, timedelta
from typing import Optional

from trafficnews_app.database import SessionLocal
from trafficnews_app.logging_config import setup_logging
from trafficnews_app.stores import SubmissionStore, utcnow

log = logging.getLogger("trafficnews")


def prune_submissions(store: SubmissionStore, older_than_days: int,
                      now: Optional[datetime] = None, dry_run: bool = False) -> int:
    if older_than_days < 0:
        raise ValueError("older_than_days must be >= 0")
    cutoff = (now or utcnow()) - timedelta(days=older_than_days)
    stale = store.get_terminal_before(cutoff)
    if dry_run:
        log.info("[CLEANUP] dry-run would delete=%d cutoff=%s", len(stale), cutoff.isoformat())
        return len(stale)
    deleted = sum(1 for s in stale if store.delete(s.id))
    log.info("[CLEANUP] deleted=%d cutoff=%s", deleted, cutoff.isoformat())
    return deleted


def main():
    ap = argparse.ArgumentParser(description="Delete sent/failed submissions older than N days.")
    ap.add_argument("--days", type=int, default=30, help="Age threshold in days (default 30).")
    ap.add_argument("--dry-run", action="store_true", help="Count matches without deleting.")
    args = ap.parse_args()

    setup_logging()
    n = prune_submissions(SubmissionStore(SessionLocal), args.days, dry_run=args.dry_run)
    print(f"{'Would delete' if args.dry_run else 'Deleted'} {n} submissions.")

if __name__ == "__main__":
    main()
