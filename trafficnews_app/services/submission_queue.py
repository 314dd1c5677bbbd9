#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/services/submission_queue.py
# Purpose: Offline submission queue (pending -> sent | failed).
#
# Description of code and how it works:
# - enqueue() persists a new pending record; a StorageFailure propagates so a
#   record is only returned once it is actually saved.
# - mark_sent()/mark_failed() are idempotent compare-and-set transitions out
#   of "pending". sent and failed are terminal; a resubmission is a new record.
# - The online flag is advisory only (reserved for a retry policy) and does
#   not gate enqueue.
#
# Author: TrafficNews Team
# Created: 2026-10-09
#
# Version: 0.2.1
# Last Modified: 2026-10-16 by TrafficNews Team
#
# Revision History:
# - 0.2.1 (2026-10-16): Storage errors on transitions reported as False.
# - 0.2.0 (2026-10-12): Atomic transitions via compare_and_set_status.
# - 0.1.0 (2026-10-09): Initial queue.
###################################################################
#
from __future__ import annotations

import logging
from typing import Any, List, Optional

from ..errors import StorageFailure
from ..schemas import SubmissionRecord
from ..stores import SubmissionStore, new_id, utcnow

log = logging.getLogger("trafficnews")

PENDING = "pending"
SENT = "sent"
FAILED = "failed"


class OfflineSubmissionQueue:
    def __init__(self, store: SubmissionStore, online: bool = True):
        self._store = store
        self._online = online

    # -- advisory connectivity flag --
    def set_online(self, online: bool) -> None:
        self._online = bool(online)

    def is_online(self) -> bool:
        return self._online

    def enqueue(self, payload: Any) -> SubmissionRecord:
        record = SubmissionRecord(id=new_id("sub"), payload=payload, timestamp=utcnow(), status=PENDING)
        saved = self._store.save(record)
        log.info("[QUEUE] enqueued id=%s online=%s", saved.id, self._online)
        return saved

    def get(self, submission_id: str) -> Optional[SubmissionRecord]:
        return self._store.get_by_id(submission_id)

    def list_pending(self) -> List[SubmissionRecord]:
        return self._store.get_pending()

    def mark_sent(self, submission_id: str) -> bool:
        return self._transition(submission_id, SENT)

    def mark_failed(self, submission_id: str) -> bool:
        return self._transition(submission_id, FAILED)

    def _transition(self, submission_id: str, target: str) -> bool:
        try:
            current = self._store.get_by_id(submission_id)
            if current is None:
                log.info("[QUEUE] %s ignored: unknown id=%s", target, submission_id)
                return False
            if current.status == target:
                return True
            if current.status != PENDING:
                log.warning("[QUEUE] %s refused id=%s status=%s (terminal)",
                            target, submission_id, current.status)
                return False
            if self._store.compare_and_set_status(submission_id, PENDING, target):
                log.info("[QUEUE] id=%s pending -> %s", submission_id, target)
                return True
            # lost a race; the winner's state decides
            latest = self._store.get_by_id(submission_id)
            return latest is not None and latest.status == target
        except StorageFailure as e:
            log.error("[QUEUE] %s failed id=%s err=%s", target, submission_id, e)
            return False
