#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/services/incidents.py
# Purpose: Incident CRUD + query entry point used by the API and publisher.
#
# Description of code and how it works:
# - create()/update() sanitize strings, lower-case type/severity/status and
#   return a WriteOutcome: the full ValidationResult plus the saved record
#   (None when validation failed).
# - update() applies an explicit patch: keys absent from `changes` are kept,
#   a key present with None clears an optional field. Clearing a required
#   field (type, severity, location, status) is a validation error.
# - list() runs the query pipeline over the store snapshot; a session key
#   opts into filter accumulation.
#
# Author: TrafficNews Team
# Created: 2026-10-08
#
# Version: 0.3.1
# Last Modified: 2026-10-19 by TrafficNews Team
#
# Revision History:
# - 0.3.1 (2026-10-19): clean_fields() shared with the submission endpoint.
# - 0.3.0 (2026-10-17): Explicit patch semantics (absent vs null).
# - 0.2.0 (2026-10-12): Session-scoped filters via FilterSessions.
# - 0.1.0 (2026-10-08): Initial CRUD.
###################################################################
#
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from ..errors import NotFoundError, ValidationResult
from ..schemas import IncidentRecord
from ..stores import IncidentStore, new_id, utcnow
from .query import FilterSessions, QueryPipeline, QuerySpec
from .validation import sanitize_string, validate, validate_status

log = logging.getLogger("trafficnews")

REQUIRED_FIELDS = ("type", "severity", "location", "status")
PATCHABLE_FIELDS = (
    "type", "severity", "location", "latitude", "longitude",
    "description", "status", "submission_id",
)
_TEXT_FIELDS = ("location", "description", "reporter_id", "submission_id")
_LOWER_FIELDS = ("type", "severity", "status")


@dataclass(frozen=True)
class WriteOutcome:
    validation: ValidationResult
    incident: Optional[IncidentRecord] = None

    @property
    def ok(self) -> bool:
        return self.validation.valid and self.incident is not None


def clean_fields(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Sanitise free-text fields and lower-case the enumerated ones."""
    out = dict(data)
    for k in _TEXT_FIELDS:
        if out.get(k) is not None:
            out[k] = sanitize_string(out[k])
    for k in _LOWER_FIELDS:
        if isinstance(out.get(k), str):
            out[k] = out[k].strip().lower()
    return out


def _check(data: Mapping[str, Any]) -> ValidationResult:
    return validate(data).merge(validate_status(data.get("status")))


class IncidentService:
    def __init__(self, store: IncidentStore, pipeline: QueryPipeline,
                 sessions: Optional[FilterSessions] = None):
        self.store = store
        self.pipeline = pipeline
        self.sessions = sessions if sessions is not None else FilterSessions()

    def list(self, query: Optional[QuerySpec] = None, session_id: Optional[str] = None) -> List[IncidentRecord]:
        query = query or QuerySpec()
        if session_id:
            merged = self.sessions.merge(session_id, query.filters)
            query = QuerySpec(filters=merged, keyword=query.keyword,
                              sort_by=query.sort_by, order=query.order)
        return self.pipeline.run(self.store.get_all(), query)

    def get(self, incident_id: str) -> IncidentRecord:
        found = self.store.get_by_id(incident_id)
        if found is None:
            raise NotFoundError("incident", incident_id)
        return found

    def by_status(self, status: str) -> List[IncidentRecord]:
        return self.store.get_by_status(status.strip().lower())

    def create(self, data: Mapping[str, Any]) -> WriteOutcome:
        values = clean_fields(data)
        values["status"] = values.get("status") or "pending"
        result = _check(values)
        if not result.valid:
            return WriteOutcome(result)
        record = IncidentRecord(
            id=values.get("id") or new_id("inc"),
            type=values["type"],
            severity=values["severity"],
            location=values["location"],
            latitude=values.get("latitude"),
            longitude=values.get("longitude"),
            description=values.get("description"),
            timestamp=values.get("timestamp") or utcnow(),
            reporter_id=values.get("reporter_id"),
            status=values["status"],
            submission_id=values.get("submission_id"),
        )
        saved = self.store.save(record)
        log.info("[INCIDENT] created id=%s type=%s severity=%s status=%s",
                 saved.id, saved.type, saved.severity, saved.status)
        return WriteOutcome(result, saved)

    def update(self, incident_id: str, changes: Mapping[str, Any]) -> WriteOutcome:
        current = self.get(incident_id)
        patch = clean_fields({k: v for k, v in changes.items() if k in PATCHABLE_FIELDS})
        merged = current.model_dump()
        merged.update(patch)
        result = _check(merged)
        cleared = [k for k in REQUIRED_FIELDS if k in patch and patch[k] is None]
        if cleared:
            result = result.merge([f"{k} cannot be cleared" for k in cleared])
        if not result.valid:
            return WriteOutcome(result)
        saved = self.store.save(IncidentRecord(**merged))
        log.info("[INCIDENT] updated id=%s fields=%s", saved.id, sorted(patch))
        return WriteOutcome(result, saved)

    def delete(self, incident_id: str) -> None:
        if not self.store.delete_by_id(incident_id):
            raise NotFoundError("incident", incident_id)
        log.info("[INCIDENT] deleted id=%s", incident_id)
