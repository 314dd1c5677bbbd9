#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/main.py
# Purpose: FastAPI app (incidents, submissions, scheduler, routes, map)
#
# Description of code and how it works:
# - Incidents: list (filter -> search -> sort), CRUD, search history and
#   per-session filter accumulation via the X-Filter-Session header.
# - Submissions: validate -> rate limit -> enqueue; queue listing and the
#   sent/failed transitions; a publish step that confirms pending items.
# - Scheduler: start/stop/interval for the publish RefreshScheduler.
# - Maintenance: AsyncIOScheduler job sweeping stale rate-limit windows.
#
# Author: TrafficNews Team
# Created: 2026-10-06
#
# Version: 0.6.1
# Last Modified: 2026-10-19 by TrafficNews Team
#
# Revision History:
# - 0.6.1 (2026-10-19): Submissions validated after sanitising, stored with
#   camelCase keys; quota refunded when the enqueue fails.
# - 0.6.0 (2026-10-18): Saved routes + map router; PATCH with explicit nulls.
# - 0.5.0 (2026-10-16): Publish step + scheduler endpoints.
# - 0.4.0 (2026-10-14): Rate-limit inspection endpoints + sweep job.
# - 0.3.0 (2026-10-12): Submission queue endpoints.
# - 0.1.0 (2026-10-06): Incidents API.
###################################################################
#

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import FastAPI, Depends, Header, Query, Request
from fastapi.responses import JSONResponse

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from . import config, deps
from .database import Base, engine, get_db
from .errors import NotFoundError, StorageFailure
from .logging_config import setup_logging
from .routes_api import map_router, router as routes_router
from .schemas import IncidentIn, IncidentPatch, IntervalIn
from .services.admission import SubmissionAdmission
from .services.incidents import IncidentService, WriteOutcome, clean_fields
from .services.publisher import publish_pending
from .services.query import FilterSpec, QuerySpec
from .services.scheduler import RefreshScheduler
from .services.submission_queue import OfflineSubmissionQueue
from .services.validation import validate
from .stores import utcnow

log = logging.getLogger("trafficnews")

app = FastAPI(title="TrafficNews")
app.include_router(routes_router)
app.include_router(map_router)

# ------------------------------------------------------------------------------
# Error mapping
# ------------------------------------------------------------------------------

@app.exception_handler(NotFoundError)
async def _not_found(request: Request, exc: NotFoundError):
    return JSONResponse({"ok": False, "error": str(exc)}, status_code=404)

@app.exception_handler(StorageFailure)
async def _storage_failure(request: Request, exc: StorageFailure):
    return JSONResponse({"ok": False, "error": str(exc)}, status_code=500)


def _dump(model) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)

def _items(records) -> Dict[str, Any]:
    return {"ok": True, "count": len(records), "items": [_dump(r) for r in records]}

def _invalid(errors: List[str]) -> JSONResponse:
    return JSONResponse({"ok": False, "error": "Validation failed", "errors": errors}, status_code=400)

def _written(outcome: WriteOutcome, status_code: int = 200) -> JSONResponse:
    if not outcome.ok:
        return _invalid(outcome.validation.errors)
    return JSONResponse(_dump(outcome.incident), status_code=status_code)

# ------------------------------------------------------------------------------
# Health
# ------------------------------------------------------------------------------

@app.get("/healthz")
def healthz(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        log.error("[HEALTH] database unreachable err=%s", e)
        return JSONResponse({"ok": False, "db": False, "ts": utcnow().isoformat() + "Z"}, status_code=503)
    return {"ok": True, "db": True, "ts": utcnow().isoformat() + "Z"}

# ------------------------------------------------------------------------------
# Incidents
# ------------------------------------------------------------------------------

@app.get("/api/incidents")
def incidents_list(
    type_: Optional[str] = Query(default=None, alias="type"),
    severity: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    keyword: Optional[str] = Query(default=None),
    sort_by: Optional[Literal["time", "severity", "type"]] = Query(default=None, alias="sortBy"),
    order: Literal["asc", "desc"] = Query(default="desc"),
    filter_session: Optional[str] = Header(default=None, alias="X-Filter-Session"),
    svc: IncidentService = Depends(deps.get_incident_service),
):
    query = QuerySpec(
        filters=FilterSpec(type=type_, severity=severity, status=status),
        keyword=keyword,
        sort_by=sort_by,
        order=order,
    )
    return _items(svc.list(query, session_id=filter_session))

@app.post("/api/incidents")
def incidents_create(body: IncidentIn, svc: IncidentService = Depends(deps.get_incident_service)):
    return _written(svc.create(body.model_dump(exclude_none=True)), status_code=201)

@app.get("/api/incidents/search-history")
def search_history(svc: IncidentService = Depends(deps.get_incident_service)):
    return {"ok": True, "items": svc.pipeline.history.items()}

@app.delete("/api/incidents/search-history")
def search_history_clear(svc: IncidentService = Depends(deps.get_incident_service)):
    svc.pipeline.history.clear()
    return {"ok": True}

@app.get("/api/incidents/{incident_id}")
def incidents_get(incident_id: str, svc: IncidentService = Depends(deps.get_incident_service)):
    return _dump(svc.get(incident_id))

@app.patch("/api/incidents/{incident_id}")
def incidents_patch(incident_id: str, body: IncidentPatch,
                    svc: IncidentService = Depends(deps.get_incident_service)):
    return _written(svc.update(incident_id, body.changes()))

@app.put("/api/incidents/{incident_id}")
def incidents_put(incident_id: str, body: IncidentIn,
                  svc: IncidentService = Depends(deps.get_incident_service)):
    # null or missing fields keep their stored value
    return _written(svc.update(incident_id, body.model_dump(exclude_none=True)))

@app.delete("/api/incidents/{incident_id}")
def incidents_delete(incident_id: str, svc: IncidentService = Depends(deps.get_incident_service)):
    svc.delete(incident_id)
    return {"ok": True, "id": incident_id}

# ------------------------------------------------------------------------------
# Filter sessions
# ------------------------------------------------------------------------------

@app.get("/api/filters")
def filters_get(
    filter_session: str = Header(..., alias="X-Filter-Session"),
    svc: IncidentService = Depends(deps.get_incident_service),
):
    return {"ok": True, "session": filter_session, "filters": svc.sessions.get(filter_session).as_dict()}

@app.put("/api/filters/{name}")
def filters_set(
    name: str,
    value: str = Query(..., min_length=1),
    filter_session: str = Header(..., alias="X-Filter-Session"),
    svc: IncidentService = Depends(deps.get_incident_service),
):
    if not svc.sessions.set_filter(filter_session, name, value):
        return JSONResponse({"ok": False, "error": f"Unknown filter: {name}"}, status_code=400)
    return {"ok": True, "session": filter_session, "filters": svc.sessions.get(filter_session).as_dict()}

@app.delete("/api/filters/{name}")
def filters_remove(
    name: str,
    filter_session: str = Header(..., alias="X-Filter-Session"),
    svc: IncidentService = Depends(deps.get_incident_service),
):
    if not svc.sessions.remove_filter(filter_session, name):
        return JSONResponse({"ok": False, "error": f"Unknown filter: {name}"}, status_code=400)
    return {"ok": True, "session": filter_session, "filters": svc.sessions.get(filter_session).as_dict()}

@app.delete("/api/filters")
def filters_clear(
    filter_session: str = Header(..., alias="X-Filter-Session"),
    svc: IncidentService = Depends(deps.get_incident_service),
):
    svc.sessions.clear(filter_session)
    return {"ok": True, "session": filter_session, "filters": {}}

# ------------------------------------------------------------------------------
# Submissions
# ------------------------------------------------------------------------------

@app.post("/api/submissions")
def submissions_create(
    body: IncidentIn,
    queue: OfflineSubmissionQueue = Depends(deps.get_submission_queue),
    admission: SubmissionAdmission = Depends(deps.get_admission),
):
    """Validate, rate limit, then queue. The checked payload is the sanitised
    one, so publishing later sees exactly what passed here."""
    payload = clean_fields(body.model_dump(exclude_none=True))
    errors = list(validate(payload).errors)
    subject = payload.get("reporter_id") or ""
    if not subject:
        errors.append("reporterId is required")
    if errors:
        return _invalid(errors)

    if not admission.can_submit(subject):
        st = admission.peek(subject)
        return JSONResponse(
            {"ok": False, "error": "Rate limit exceeded", "subjectId": subject, "resetsInMs": st.resets_in_ms},
            status_code=429,
        )

    try:
        record = queue.enqueue(IncidentIn(**payload).model_dump(exclude_none=True, by_alias=True))
    except StorageFailure:
        admission.refund(subject)
        raise
    return JSONResponse(_dump(record), status_code=201)

@app.get("/api/submissions/queue")
def submissions_queue(queue: OfflineSubmissionQueue = Depends(deps.get_submission_queue)):
    out = _items(queue.list_pending())
    out["online"] = queue.is_online()
    return out

@app.post("/api/submissions/process")
def submissions_process(
    queue: OfflineSubmissionQueue = Depends(deps.get_submission_queue),
    svc: IncidentService = Depends(deps.get_incident_service),
):
    report = publish_pending(queue, svc)
    return {"ok": True, **report.as_dict()}

@app.get("/api/submissions/{submission_id}")
def submissions_get(submission_id: str, queue: OfflineSubmissionQueue = Depends(deps.get_submission_queue)):
    record = queue.get(submission_id)
    if record is None:
        raise NotFoundError("submission", submission_id)
    return _dump(record)


def _mark(queue: OfflineSubmissionQueue, submission_id: str, target: str) -> JSONResponse:
    current = queue.get(submission_id)
    if current is None:
        raise NotFoundError("submission", submission_id)
    done = queue.mark_sent(submission_id) if target == "sent" else queue.mark_failed(submission_id)
    if not done:
        latest = queue.get(submission_id)
        return JSONResponse(
            {"ok": False, "id": submission_id, "status": latest.status if latest else current.status,
             "error": f"Cannot mark submission as {target}"},
            status_code=409,
        )
    return JSONResponse({"ok": True, "id": submission_id, "status": target})

@app.post("/api/submissions/{submission_id}/sent")
def submissions_sent(submission_id: str, queue: OfflineSubmissionQueue = Depends(deps.get_submission_queue)):
    return _mark(queue, submission_id, "sent")

@app.post("/api/submissions/{submission_id}/failed")
def submissions_failed(submission_id: str, queue: OfflineSubmissionQueue = Depends(deps.get_submission_queue)):
    return _mark(queue, submission_id, "failed")

# ------------------------------------------------------------------------------
# Rate limit inspection
# ------------------------------------------------------------------------------

@app.get("/api/ratelimit/{subject_id}")
def ratelimit_get(subject_id: str, admission: SubmissionAdmission = Depends(deps.get_admission)):
    st = admission.peek(subject_id)
    return {
        "ok": True,
        "subjectId": st.subject_id,
        "limit": st.limit,
        "used": st.used,
        "remaining": st.remaining,
        "resetsInMs": st.resets_in_ms,
    }

@app.delete("/api/ratelimit/{subject_id}")
def ratelimit_reset(subject_id: str, admission: SubmissionAdmission = Depends(deps.get_admission)):
    return {"ok": True, "subjectId": subject_id, "reset": admission.reset_subject(subject_id)}

# ------------------------------------------------------------------------------
# Publish scheduler
# ------------------------------------------------------------------------------

@app.get("/api/scheduler")
def scheduler_status(sched: RefreshScheduler = Depends(deps.get_publish_scheduler)):
    return sched.snapshot()

@app.post("/api/scheduler/start")
def scheduler_start(sched: RefreshScheduler = Depends(deps.get_publish_scheduler)):
    if not sched.start():
        return JSONResponse({"ok": False, "error": "Scheduler already running"}, status_code=409)
    return {"ok": True, **sched.snapshot()}

@app.post("/api/scheduler/stop")
def scheduler_stop(sched: RefreshScheduler = Depends(deps.get_publish_scheduler)):
    if not sched.stop():
        return JSONResponse({"ok": False, "error": "Scheduler not running"}, status_code=409)
    return {"ok": True, **sched.snapshot()}

@app.put("/api/scheduler/interval")
def scheduler_interval(body: IntervalIn, sched: RefreshScheduler = Depends(deps.get_publish_scheduler)):
    if not sched.set_interval(body.interval_ms):
        return JSONResponse(
            {"ok": False, "error": f"intervalMs must be >= {sched.min_interval_ms}"},
            status_code=400,
        )
    return {"ok": True, **sched.snapshot()}

# ------------------------------------------------------------------------------
# Maintenance scheduler
# ------------------------------------------------------------------------------

scheduler = AsyncIOScheduler()

async def _scheduled_admission_sweep():
    try:
        evicted = deps.admission.sweep()
        log.debug("[SYNC] admission_sweep evicted=%d tracked=%d", evicted, len(deps.admission))
    except Exception as e:
        log.exception("[SYNC] admission_sweep_error err=%s", e)

@app.on_event("startup")
async def _startup():
    setup_logging()
    if config.AUTO_CREATE_SCHEMA:
        Base.metadata.create_all(bind=engine)
    scheduler.add_job(
        _scheduled_admission_sweep, "interval",
        minutes=config.RATE_SWEEP_MINUTES, id="admission_sweep", replace_existing=True,
    )
    scheduler.start()
    if config.AUTO_PUBLISH:
        deps.publish_scheduler.start()
    log.info("[APP] started auto_publish=%s rate_limit=%d/%dms",
             config.AUTO_PUBLISH, config.RATE_LIMIT, config.RATE_WINDOW_MS)

@app.on_event("shutdown")
async def _shutdown():
    deps.publish_scheduler.stop()
    scheduler.shutdown(wait=False)
