#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/deps.py
# Purpose: Process-wide service instances + FastAPI dependency providers.
#
# Description of code and how it works:
# - Stores share SessionLocal; services are built once per process.
# - Endpoints receive them through Depends(get_*) so tests can swap them
#   with app.dependency_overrides.
#
# Author: TrafficNews Team
# Created: 2026-10-09
#
# Version: 0.3.0
# Last Modified: 2026-10-17 by TrafficNews Team
#
# Revision History:
# - 0.3.0 (2026-10-17): Publish scheduler + geocoder providers.
# - 0.2.0 (2026-10-12): Admission + queue providers.
# - 0.1.0 (2026-10-09): Incident service provider.
###################################################################
#
from . import config
from .connectors.nominatim import NominatimClient
from .database import SessionLocal
from .services.admission import SubmissionAdmission
from .services.incidents import IncidentService
from .services.publisher import publish_pending
from .services.query import FilterSessions, QueryPipeline, SearchHistory
from .services.scheduler import RefreshScheduler
from .services.submission_queue import OfflineSubmissionQueue
from .stores import IncidentStore, SubmissionStore, RouteStore

incident_service = IncidentService(
    IncidentStore(SessionLocal),
    QueryPipeline(SearchHistory(config.SEARCH_HISTORY_MAX)),
    FilterSessions(config.FILTER_SESSIONS_MAX),
)
submission_queue = OfflineSubmissionQueue(SubmissionStore(SessionLocal))
route_store = RouteStore(SessionLocal)
admission = SubmissionAdmission(
    limit=config.RATE_LIMIT,
    window_ms=config.RATE_WINDOW_MS,
    evict_factor=config.RATE_EVICT_FACTOR,
)
publish_scheduler = RefreshScheduler(
    lambda: publish_pending(submission_queue, incident_service),
    interval_ms=max(config.REFRESH_INTERVAL_MS, config.REFRESH_MIN_INTERVAL_MS),
    min_interval_ms=config.REFRESH_MIN_INTERVAL_MS,
    name="publish",
)
geocoder = NominatimClient()


def get_incident_service() -> IncidentService:
    return incident_service


def get_submission_queue() -> OfflineSubmissionQueue:
    return submission_queue


def get_route_store() -> RouteStore:
    return route_store


def get_admission() -> SubmissionAdmission:
    return admission


def get_publish_scheduler() -> RefreshScheduler:
    return publish_scheduler


def get_geocoder() -> NominatimClient:
    return geocoder
