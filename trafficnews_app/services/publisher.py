#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/services/publisher.py
# Purpose: Publish step: pending submissions -> confirmed incidents.
#
# Description of code and how it works:
# - Walks list_pending() oldest first. Each payload becomes a confirmed
#   incident tagged with the submission id, then the submission is marked
#   sent. Invalid payloads and storage errors mark it failed.
# - Used by POST /api/submissions/process and by the auto-publish
#   RefreshScheduler.
#
# Author: TrafficNews Team
# Created: 2026-10-12
#
# Version: 0.1.1
# Last Modified: 2026-10-16 by TrafficNews Team
#
# Revision History:
# - 0.1.1 (2026-10-16): Structured result counters.
# - 0.1.0 (2026-10-12): Initial publish loop.
###################################################################
#
from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Any, Dict

from ..errors import StorageFailure
from .incidents import IncidentService
from .submission_queue import OfflineSubmissionQueue

log = logging.getLogger("trafficnews")

_CAMEL_KEYS = {"reporterId": "reporter_id", "submissionId": "submission_id"}


@dataclass
class PublishReport:
    total: int = 0
    sent: int = 0
    failed: int = 0

    @property
    def processed(self) -> int:
        return self.sent + self.failed

    def as_dict(self) -> Dict[str, int]:
        return {**asdict(self), "processed": self.processed}


def _incident_fields(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        return {}
    return {_CAMEL_KEYS.get(k, k): v for k, v in payload.items()}


def publish_pending(queue: OfflineSubmissionQueue, incidents: IncidentService) -> PublishReport:
    pending = queue.list_pending()
    report = PublishReport(total=len(pending))
    for sub in pending:
        data = _incident_fields(sub.payload)
        # deterministic id: a retried publish overwrites instead of duplicating
        data.update(id=f"inc_{sub.id}", status="confirmed", submission_id=sub.id)
        try:
            outcome = incidents.create(data)
        except StorageFailure as e:
            log.error("[PUBLISH] submission=%s storage error err=%s", sub.id, e)
            outcome = None

        if outcome is not None and outcome.ok:
            if queue.mark_sent(sub.id):
                report.sent += 1
            continue

        if outcome is not None:
            log.warning("[PUBLISH] submission=%s rejected errors=%s", sub.id, outcome.validation.errors)
        if queue.mark_failed(sub.id):
            report.failed += 1

    if report.total:
        log.info("[PUBLISH] total=%d sent=%d failed=%d", report.total, report.sent, report.failed)
    return report
