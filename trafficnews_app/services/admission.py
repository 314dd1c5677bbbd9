#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/services/admission.py
# Purpose: Per-reporter fixed-window submission limiter.
#
# Description of code and how it works:
# - One window per subject: {window_start, count}. First call opens the
#   window; calls after window_ms reopen it; otherwise count < limit admits.
# - Fixed window: up to 2x limit can pass around a window boundary. Moving
#   to a sliding log / token bucket changes admission timing and is an
#   upgrade, not a fix.
# - Check-and-increment runs under one lock. sweep() evicts windows idle for
#   more than evict_factor windows (scheduled from main.py).
#
# Author: TrafficNews Team
# Created: 2026-10-08
#
# Version: 0.3.1
# Last Modified: 2026-10-19 by TrafficNews Team
#
# Revision History:
# - 0.3.1 (2026-10-19): refund() for admissions whose submission was not stored.
# - 0.3.0 (2026-10-16): peek() for the rate limit endpoint.
# - 0.2.0 (2026-10-11): Eviction sweep for stale windows.
# - 0.1.0 (2026-10-08): Initial limiter (5/hour default).
###################################################################
#
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

log = logging.getLogger("trafficnews")

DEFAULT_LIMIT = 5
DEFAULT_WINDOW_MS = 3_600_000


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


@dataclass
class RateWindow:
    window_start: float
    count: int


@dataclass(frozen=True)
class AdmissionStatus:
    subject_id: str
    limit: int
    used: int
    remaining: int
    resets_in_ms: int


class SubmissionAdmission:
    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        window_ms: int = DEFAULT_WINDOW_MS,
        evict_factor: int = 2,
        clock: Callable[[], float] = _monotonic_ms,
    ):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_ms <= 0:
            raise ValueError("window_ms must be > 0")
        self.limit = limit
        self.window_ms = window_ms
        self.evict_factor = max(1, evict_factor)
        self._clock = clock
        self._windows: Dict[str, RateWindow] = {}
        self._lock = threading.Lock()

    def can_submit(self, subject_id: str) -> bool:
        now = self._clock()
        with self._lock:
            w = self._windows.get(subject_id)
            if w is None:
                self._windows[subject_id] = RateWindow(window_start=now, count=1)
                allowed = True
            elif now - w.window_start > self.window_ms:
                w.window_start = now
                w.count = 1
                allowed = True
            elif w.count < self.limit:
                w.count += 1
                allowed = True
            else:
                allowed = False
        if not allowed:
            log.info("[ADMISSION] denied subject=%s limit=%d window_ms=%d",
                     subject_id, self.limit, self.window_ms)
        return allowed

    def peek(self, subject_id: str) -> AdmissionStatus:
        now = self._clock()
        with self._lock:
            w = self._windows.get(subject_id)
            if w is None or now - w.window_start > self.window_ms:
                used, resets_in = 0, 0
            else:
                used = w.count
                resets_in = int(max(0.0, w.window_start + self.window_ms - now))
        return AdmissionStatus(
            subject_id=subject_id,
            limit=self.limit,
            used=used,
            remaining=max(0, self.limit - used),
            resets_in_ms=resets_in,
        )

    def reset_subject(self, subject_id: str) -> bool:
        with self._lock:
            removed = self._windows.pop(subject_id, None) is not None
        if removed:
            log.info("[ADMISSION] reset subject=%s", subject_id)
        return removed

    def refund(self, subject_id: str) -> bool:
        """Give back one admission from the current window (the request was
        admitted but nothing was stored)."""
        now = self._clock()
        with self._lock:
            w = self._windows.get(subject_id)
            refunded = w is not None and w.count > 0 and now - w.window_start <= self.window_ms
            if refunded:
                w.count -= 1
        if refunded:
            log.info("[ADMISSION] refund subject=%s", subject_id)
        return refunded

    def sweep(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        horizon = self.window_ms * self.evict_factor
        with self._lock:
            stale = [k for k, w in self._windows.items() if now - w.window_start > horizon]
            for k in stale:
                del self._windows[k]
        if stale:
            log.info("[ADMISSION] sweep evicted=%d", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)
