#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/client.py
# Purpose: HTTP client for the TrafficNews API + periodic incident watcher
#
# Description of code and how it works:
# - TrafficNewsClient wraps the JSON API with httpx (sync). Non-2xx responses
#   raise httpx.HTTPStatusError; 400 bodies carry "errors".
# - IncidentWatcher re-runs one QuerySpec on a RefreshScheduler and hands the
#   result to every observer. A failing observer is logged and skipped.
#
# Author: TrafficNews Team
# Created: 2026-10-16
#
# Version: 0.2.0
# Last Modified: 2026-10-18 by TrafficNews Team
#
# Revision History:
# - 0.2.0 (2026-10-18): IncidentWatcher.
# - 0.1.0 (2026-10-16): Initial client.
###################################################################
#
from __future__ import annotations

import logging
import os
import threading
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx

from .schemas import IncidentRecord, SubmissionRecord
from .services.query import QuerySpec
from .services.scheduler import DEFAULT_INTERVAL_MS, MIN_INTERVAL_MS, RefreshScheduler

log = logging.getLogger("trafficnews")

DEFAULT_BASE_URL = os.getenv("TRAFFICNEWS_API_URL", "http://127.0.0.1:8000")

Observer = Callable[[List[IncidentRecord]], None]


def _query_params(query: Optional[QuerySpec]) -> Dict[str, str]:
    if query is None:
        return {}
    params = dict(query.filters.as_dict())
    if query.keyword:
        params["keyword"] = query.keyword
    if query.sort_by:
        params["sortBy"] = query.sort_by
        params["order"] = query.order
    return params


class TrafficNewsClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 10.0,
                 transport: Optional[httpx.BaseTransport] = None):
        self._http = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TrafficNewsClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _call(self, method: str, path: str, **kwargs) -> Any:
        resp = self._http.request(method, path, **kwargs)
        resp.raise_for_status()
        return resp.json()

    def list_incidents(self, query: Optional[QuerySpec] = None,
                       session_id: Optional[str] = None) -> List[IncidentRecord]:
        headers = {"X-Filter-Session": session_id} if session_id else None
        data = self._call("GET", "/api/incidents", params=_query_params(query), headers=headers)
        return [IncidentRecord.model_validate(x) for x in data.get("items", [])]

    def get_incident(self, incident_id: str) -> IncidentRecord:
        return IncidentRecord.model_validate(self._call("GET", f"/api/incidents/{incident_id}"))

    def create_incident(self, data: Mapping[str, Any]) -> IncidentRecord:
        return IncidentRecord.model_validate(self._call("POST", "/api/incidents", json=dict(data)))

    def update_incident(self, incident_id: str, changes: Mapping[str, Any]) -> IncidentRecord:
        """PATCH: keys left out are untouched; an explicit None clears the field."""
        return IncidentRecord.model_validate(
            self._call("PATCH", f"/api/incidents/{incident_id}", json=dict(changes))
        )

    def delete_incident(self, incident_id: str) -> None:
        self._call("DELETE", f"/api/incidents/{incident_id}")

    def submit(self, data: Mapping[str, Any]) -> SubmissionRecord:
        return SubmissionRecord.model_validate(self._call("POST", "/api/submissions", json=dict(data)))

    def pending_submissions(self) -> List[SubmissionRecord]:
        data = self._call("GET", "/api/submissions/queue")
        return [SubmissionRecord.model_validate(x) for x in data.get("items", [])]

    def process_submissions(self) -> Dict[str, Any]:
        return self._call("POST", "/api/submissions/process")

    def watch(self, query: Optional[QuerySpec] = None, interval_ms: int = DEFAULT_INTERVAL_MS) -> "IncidentWatcher":
        return IncidentWatcher(self.list_incidents, query=query, interval_ms=interval_ms)


class IncidentWatcher:
    def __init__(
        self,
        fetch: Callable[[Optional[QuerySpec]], List[IncidentRecord]],
        query: Optional[QuerySpec] = None,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        min_interval_ms: int = MIN_INTERVAL_MS,
    ):
        self.fetch = fetch
        self.query = query
        self.latest: List[IncidentRecord] = []
        self._observers: List[Observer] = []
        self._lock = threading.Lock()
        self.scheduler = RefreshScheduler(self.refresh, interval_ms=interval_ms,
                                          min_interval_ms=min_interval_ms, name="watcher")

    def subscribe(self, observer: Observer) -> None:
        with self._lock:
            self._observers.append(observer)

    def unsubscribe(self, observer: Observer) -> None:
        with self._lock:
            if observer in self._observers:
                self._observers.remove(observer)

    def refresh(self) -> List[IncidentRecord]:
        items = self.fetch(self.query)
        self.latest = items
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(items)
            except Exception as e:
                log.exception("[WATCH] observer error observer=%r err=%s", observer, e)
        return items

    def start(self) -> bool:
        return self.scheduler.start()

    def stop(self) -> bool:
        return self.scheduler.stop()
