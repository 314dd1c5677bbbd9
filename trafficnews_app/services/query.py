#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/services/query.py
# Purpose: Filter -> search -> sort pipeline over incident records.
#
# Description of code and how it works:
# - Filter: AND of equality predicates on type/severity/status; absent
#   fields are wildcards.
# - Search: trimmed, case-folded substring match on location, description
#   and type; blank keywords pass everything through. Each real keyword is
#   recorded in a bounded, de-duplicated, most-recent-first history.
# - Sort: time | severity (fixed rank, never lexical) | type; asc/desc.
#   Python's sort is stable, including with reverse=True, so ties keep
#   their input order.
# - Filters are request-local by default. Callers that want accumulation
#   pass a session key; FilterSessions merges per key under a lock and is
#   LRU-bounded.
#
# Author: TrafficNews Team
# Created: 2026-10-08
#
# Version: 0.4.0
# Last Modified: 2026-10-17 by TrafficNews Team
#
# Revision History:
# - 0.4.0 (2026-10-17): Per-session filter accumulation (replaces the global
#   active filter map).
# - 0.3.0 (2026-10-12): Search history is thread-safe.
# - 0.2.0 (2026-10-10): Stable severity ranking.
# - 0.1.0 (2026-10-08): Initial filter/search/sort.
###################################################################
#
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field, fields, replace
from typing import Iterable, List, Optional, Sequence

from ..schemas import IncidentRecord

log = logging.getLogger("trafficnews")

FILTER_FIELDS = ("type", "severity", "status")
SORT_KEYS = ("time", "severity", "type")
SORT_ORDERS = ("asc", "desc")

SEVERITY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}


def severity_rank(severity: Optional[str]) -> int:
    return SEVERITY_RANK.get((severity or "").lower(), 0)


def _norm(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip().lower()
    return value or None


@dataclass(frozen=True)
class FilterSpec:
    type: Optional[str] = None
    severity: Optional[str] = None
    status: Optional[str] = None

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, _norm(getattr(self, f.name)))

    def merged(self, newer: "FilterSpec") -> "FilterSpec":
        """Fields set on ``newer`` win; unset ones keep this spec's value."""
        updates = {f: getattr(newer, f) for f in FILTER_FIELDS if getattr(newer, f) is not None}
        return replace(self, **updates)

    def is_empty(self) -> bool:
        return all(getattr(self, f) is None for f in FILTER_FIELDS)

    def as_dict(self) -> dict:
        return {f: getattr(self, f) for f in FILTER_FIELDS if getattr(self, f) is not None}

    def matches(self, incident: IncidentRecord) -> bool:
        for f in FILTER_FIELDS:
            want = getattr(self, f)
            if want is not None and (getattr(incident, f) or "").lower() != want:
                return False
        return True


@dataclass(frozen=True)
class QuerySpec:
    filters: FilterSpec = field(default_factory=FilterSpec)
    keyword: Optional[str] = None
    sort_by: Optional[str] = None
    order: str = "desc"


class SearchHistory:
    def __init__(self, capacity: int = 10):
        self.capacity = capacity
        self._items: List[str] = []
        self._lock = threading.Lock()

    def add(self, term: str) -> None:
        if not term:
            return
        with self._lock:
            # a repeated term keeps its original position
            if term in self._items:
                return
            self._items.insert(0, term)
            del self._items[self.capacity:]

    def items(self) -> List[str]:
        with self._lock:
            return list(self._items)

    def clear(self) -> None:
        with self._lock:
            self._items.clear()


class FilterSessions:
    def __init__(self, max_sessions: int = 1000):
        self.max_sessions = max_sessions
        self._specs: "OrderedDict[str, FilterSpec]" = OrderedDict()
        self._lock = threading.Lock()

    def _put(self, session_id: str, spec: FilterSpec) -> None:
        self._specs[session_id] = spec
        self._specs.move_to_end(session_id)
        while len(self._specs) > self.max_sessions:
            self._specs.popitem(last=False)

    def merge(self, session_id: str, spec: FilterSpec) -> FilterSpec:
        with self._lock:
            merged = self._specs.get(session_id, FilterSpec()).merged(spec)
            self._put(session_id, merged)
            return merged

    def get(self, session_id: str) -> FilterSpec:
        with self._lock:
            return self._specs.get(session_id, FilterSpec())

    def set_filter(self, session_id: str, name: str, value: Optional[str]) -> bool:
        if name not in FILTER_FIELDS:
            return False
        with self._lock:
            current = self._specs.get(session_id, FilterSpec())
            self._put(session_id, replace(current, **{name: value}))
        return True

    def remove_filter(self, session_id: str, name: str) -> bool:
        return self.set_filter(session_id, name, None)

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._specs.pop(session_id, None)


class QueryPipeline:
    def __init__(self, history: Optional[SearchHistory] = None):
        self.history = history if history is not None else SearchHistory()

    def filter_incidents(self, incidents: Iterable[IncidentRecord], spec: FilterSpec) -> List[IncidentRecord]:
        if spec.is_empty():
            return list(incidents)
        return [i for i in incidents if spec.matches(i)]

    def search(self, incidents: Iterable[IncidentRecord], keyword: Optional[str]) -> List[IncidentRecord]:
        if keyword is None or not keyword.strip():
            return list(incidents)
        term = keyword.strip().casefold()
        self.history.add(term)

        def hit(i: IncidentRecord) -> bool:
            return any(term in (v or "").casefold() for v in (i.location, i.description, i.type))

        return [i for i in incidents if hit(i)]

    def sort_incidents(self, incidents: Sequence[IncidentRecord], sort_by: Optional[str],
                       order: Optional[str] = "desc") -> List[IncidentRecord]:
        key_name = (sort_by or "time").lower()
        direction = (order or "desc").lower()
        if key_name not in SORT_KEYS:
            raise ValueError(f"sort_by must be one of: {', '.join(SORT_KEYS)}")
        if direction not in SORT_ORDERS:
            raise ValueError("order must be 'asc' or 'desc'")

        if key_name == "severity":
            key = lambda i: severity_rank(i.severity)
        elif key_name == "type":
            key = lambda i: i.type or ""
        else:
            key = lambda i: i.timestamp
        return sorted(incidents, key=key, reverse=(direction == "desc"))

    def run(self, incidents: Iterable[IncidentRecord], query: QuerySpec) -> List[IncidentRecord]:
        items = self.filter_incidents(incidents, query.filters)
        items = self.search(items, query.keyword)
        if query.sort_by:
            items = self.sort_incidents(items, query.sort_by, query.order)
        log.debug("[QUERY] filters=%s keyword=%r sort=%s/%s -> %d",
                  query.filters.as_dict(), query.keyword, query.sort_by, query.order, len(items))
        return items
