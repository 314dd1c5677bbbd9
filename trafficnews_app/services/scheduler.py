#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/services/scheduler.py
# Purpose: Cancellable periodic refresh on a scheduler-owned thread.
#
# Description of code and how it works:
# - Each RefreshScheduler owns an APScheduler BackgroundScheduler with one
#   interval job; the first run fires immediately on start().
# - Single-flight: if the previous callback is still running when a tick
#   arrives, the tick is skipped and counted. APScheduler drops it first
#   (max_instances=1) and reports EVENT_JOB_MAX_INSTANCES, which is counted;
#   the non-blocking lock in _tick covers runs that straddle a restart.
# - Callback errors are logged and counted; later ticks still run.
# - stop() cancels future ticks only; an in-flight callback finishes.
# - set_interval() below the floor is refused; otherwise restart if running
#   (stop + start, so the cadence is not drift-free across the change).
#
# Author: TrafficNews Team
# Created: 2026-10-09
#
# Version: 0.3.1
# Last Modified: 2026-10-19 by TrafficNews Team
#
# Revision History:
# - 0.3.1 (2026-10-19): Count ticks dropped by APScheduler (max instances).
# - 0.3.0 (2026-10-17): Tick/skip/failure counters for /api/scheduler.
# - 0.2.0 (2026-10-13): Single-flight ticks.
# - 0.1.0 (2026-10-09): Initial BackgroundScheduler wrapper.
###################################################################
#
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Optional

from apscheduler.events import EVENT_JOB_MAX_INSTANCES
from apscheduler.schedulers.background import BackgroundScheduler

log = logging.getLogger("trafficnews")

DEFAULT_INTERVAL_MS = 30_000
MIN_INTERVAL_MS = 5_000


class RefreshScheduler:
    def __init__(
        self,
        callback: Callable[[], None],
        interval_ms: int = DEFAULT_INTERVAL_MS,
        min_interval_ms: int = MIN_INTERVAL_MS,
        name: str = "refresh",
    ):
        if interval_ms < min_interval_ms:
            raise ValueError(f"interval_ms must be >= {min_interval_ms}")
        self._callback = callback
        self._interval_ms = int(interval_ms)
        self.min_interval_ms = int(min_interval_ms)
        self.name = name

        self._state_lock = threading.Lock()
        self._in_flight = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

        self.ticks = 0
        self.skipped_ticks = 0
        self.failures = 0
        self.last_error: Optional[str] = None
        self.last_run_at: Optional[datetime] = None

    @property
    def interval_ms(self) -> int:
        return self._interval_ms

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None

    def start(self) -> bool:
        with self._state_lock:
            if self._scheduler is not None:
                return False
            sched = BackgroundScheduler(daemon=True)
            sched.add_job(
                self._tick,
                "interval",
                seconds=self._interval_ms / 1000.0,
                next_run_time=datetime.now(timezone.utc),
                max_instances=1,
                coalesce=True,
                id=f"{self.name}_tick",
            )
            sched.add_listener(self._on_max_instances, EVENT_JOB_MAX_INSTANCES)
            sched.start()
            self._scheduler = sched
        log.info("[SCHED] %s started interval_ms=%d", self.name, self._interval_ms)
        return True

    def stop(self) -> bool:
        with self._state_lock:
            sched = self._scheduler
            if sched is None:
                return False
            self._scheduler = None
        # wait=False: never block on (or interrupt) an in-flight callback
        sched.shutdown(wait=False)
        log.info("[SCHED] %s stopped", self.name)
        return True

    def set_interval(self, interval_ms: int) -> bool:
        if interval_ms < self.min_interval_ms:
            log.warning("[SCHED] %s interval %dms refused (minimum %dms)",
                        self.name, interval_ms, self.min_interval_ms)
            return False
        self._interval_ms = int(interval_ms)
        if self.is_running:
            self.stop()
            self.start()
        return True

    def _count_skip(self) -> None:
        self.skipped_ticks += 1
        log.warning("[SCHED] %s tick skipped: previous run still in progress", self.name)

    def _on_max_instances(self, event) -> None:
        self._count_skip()

    def _tick(self) -> None:
        if not self._in_flight.acquire(blocking=False):
            self._count_skip()
            return
        try:
            self.ticks += 1
            self.last_run_at = datetime.now(timezone.utc)
            self._callback()
        except Exception as e:
            self.failures += 1
            self.last_error = str(e)
            log.exception("[SCHED] %s callback error err=%s", self.name, e)
        finally:
            self._in_flight.release()

    def snapshot(self) -> dict:
        return {
            "name": self.name,
            "running": self.is_running,
            "intervalMs": self._interval_ms,
            "minIntervalMs": self.min_interval_ms,
            "ticks": self.ticks,
            "skippedTicks": self.skipped_ticks,
            "failures": self.failures,
            "lastError": self.last_error,
            "lastRunAt": self.last_run_at.isoformat() if self.last_run_at else None,
        }
