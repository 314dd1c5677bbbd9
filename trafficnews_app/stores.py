#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/stores.py
# Purpose: Incident / submission / route stores over SQLAlchemy sessions.
#
# Description of code and how it works:
# - One short session per call; commit on success, rollback + StorageFailure
#   on any SQLAlchemyError so callers never see a half-written row.
# - save() is insert-or-update keyed by id presence, with an IntegrityError
#   fallback to update when a concurrent insert wins the race.
# - Submission status changes use a conditional UPDATE (compare-and-set).
# - Rows are returned as pydantic records, never as live ORM objects.
#
# Author: TrafficNews Team
# Created: 2026-10-07
#
# Version: 0.4.0
# Last Modified: 2026-10-16 by TrafficNews Team
#
# Revision History:
# - 0.4.0 (2026-10-16): RouteStore.
# - 0.3.0 (2026-10-12): compare_and_set_status; terminal submissions query.
# - 0.2.0 (2026-10-09): SubmissionStore.
# - 0.1.0 (2026-10-07): IncidentStore with race-safe upsert.
###################################################################
#
from __future__ import annotations

import json
import logging
import secrets
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .errors import StorageFailure
from .models import Incident, Submission, Route
from .schemas import IncidentRecord, SubmissionRecord, RouteRecord

log = logging.getLogger("trafficnews")

_INCIDENT_FIELDS = (
    "type", "severity", "location", "latitude", "longitude", "description",
    "timestamp", "reporter_id", "status", "submission_id",
)
_ROUTE_FIELDS = ("name", "latitude", "longitude", "radius", "user_id", "created_at")


def utcnow() -> datetime:
    # naive UTC: portable across SQLite/MySQL DateTime columns
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id(prefix: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


@contextmanager
def _session(factory: sessionmaker, what: str) -> Iterator[Session]:
    db = factory()
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.error("[STORE] %s failed err=%s", what, e)
        raise StorageFailure(f"{what} failed") from e
    finally:
        db.close()


def _upsert(db: Session, model, ident: str, values: dict) -> None:
    existing = db.get(model, ident)
    if existing is not None:
        for k, v in values.items():
            setattr(existing, k, v)
        return
    db.add(model(id=ident, **values))
    try:
        db.flush()
    except IntegrityError:
        # another writer inserted the same id first; update theirs
        db.rollback()
        existing = db.get(model, ident)
        if existing is None:
            raise
        for k, v in values.items():
            setattr(existing, k, v)


# ---- incidents ----------------------------------------------------------------

class IncidentStore:
    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    def get_all(self) -> List[IncidentRecord]:
        with _session(self._sessions, "incidents.get_all") as db:
            rows = db.execute(select(Incident).order_by(Incident.timestamp.desc())).scalars().all()
            return [IncidentRecord.model_validate(r) for r in rows]

    def get_by_id(self, incident_id: str) -> Optional[IncidentRecord]:
        with _session(self._sessions, "incidents.get_by_id") as db:
            row = db.get(Incident, incident_id)
            return IncidentRecord.model_validate(row) if row is not None else None

    def get_by_status(self, status: str) -> List[IncidentRecord]:
        with _session(self._sessions, "incidents.get_by_status") as db:
            rows = db.execute(
                select(Incident).where(Incident.status == status).order_by(Incident.timestamp.desc())
            ).scalars().all()
            return [IncidentRecord.model_validate(r) for r in rows]

    def save(self, record: IncidentRecord) -> IncidentRecord:
        if not record.id:
            record = record.model_copy(update={"id": new_id("inc")})
        values = {k: getattr(record, k) for k in _INCIDENT_FIELDS}
        with _session(self._sessions, "incidents.save") as db:
            _upsert(db, Incident, record.id, values)
        return record

    def delete_by_id(self, incident_id: str) -> bool:
        with _session(self._sessions, "incidents.delete") as db:
            row = db.get(Incident, incident_id)
            if row is None:
                return False
            db.delete(row)
            return True


# ---- submissions --------------------------------------------------------------

def _dump_payload(payload: Any) -> str:
    return json.dumps(payload, default=str)


def _load_payload(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def _submission(row: Submission) -> SubmissionRecord:
    return SubmissionRecord(
        id=row.id,
        payload=_load_payload(row.incident_data),
        timestamp=row.timestamp,
        status=row.status,
    )


class SubmissionStore:
    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    def save(self, record: SubmissionRecord) -> SubmissionRecord:
        values = {
            "incident_data": _dump_payload(record.payload),
            "timestamp": record.timestamp,
            "status": record.status,
        }
        with _session(self._sessions, "submissions.save") as db:
            _upsert(db, Submission, record.id, values)
        return record

    def get_by_id(self, submission_id: str) -> Optional[SubmissionRecord]:
        with _session(self._sessions, "submissions.get_by_id") as db:
            row = db.get(Submission, submission_id)
            return _submission(row) if row is not None else None

    def get_pending(self) -> List[SubmissionRecord]:
        with _session(self._sessions, "submissions.get_pending") as db:
            rows = db.execute(
                select(Submission)
                .where(Submission.status == "pending")
                .order_by(Submission.timestamp.asc(), Submission.id.asc())
            ).scalars().all()
            return [_submission(r) for r in rows]

    def get_terminal_before(self, cutoff: datetime) -> List[SubmissionRecord]:
        with _session(self._sessions, "submissions.get_terminal_before") as db:
            rows = db.execute(
                select(Submission)
                .where(Submission.status.in_(("sent", "failed")), Submission.timestamp < cutoff)
                .order_by(Submission.timestamp.asc())
            ).scalars().all()
            return [_submission(r) for r in rows]

    def compare_and_set_status(self, submission_id: str, expected: str, new: str) -> bool:
        with _session(self._sessions, "submissions.compare_and_set_status") as db:
            res = db.execute(
                update(Submission)
                .where(Submission.id == submission_id, Submission.status == expected)
                .values(status=new)
            )
            return res.rowcount == 1

    def delete(self, submission_id: str) -> bool:
        with _session(self._sessions, "submissions.delete") as db:
            row = db.get(Submission, submission_id)
            if row is None:
                return False
            db.delete(row)
            return True


# ---- saved routes -------------------------------------------------------------

class RouteStore:
    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    def get_all(self, user_id: Optional[str] = None) -> List[RouteRecord]:
        with _session(self._sessions, "routes.get_all") as db:
            q = select(Route).order_by(Route.created_at.desc())
            if user_id:
                q = q.where(Route.user_id == user_id)
            return [RouteRecord.model_validate(r) for r in db.execute(q).scalars().all()]

    def get_by_id(self, route_id: str) -> Optional[RouteRecord]:
        with _session(self._sessions, "routes.get_by_id") as db:
            row = db.get(Route, route_id)
            return RouteRecord.model_validate(row) if row is not None else None

    def save(self, record: RouteRecord) -> RouteRecord:
        values = {k: getattr(record, k) for k in _ROUTE_FIELDS}
        with _session(self._sessions, "routes.save") as db:
            _upsert(db, Route, record.id, values)
        return record

    def delete(self, route_id: str) -> bool:
        with _session(self._sessions, "routes.delete") as db:
            row = db.get(Route, route_id)
            if row is None:
                return False
            db.delete(row)
            return True
