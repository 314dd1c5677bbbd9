"""Pytest configuration and shared fixtures for TrafficNews tests."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import datetime, timedelta
from typing import Any, Dict

import httpx
import pytest
from fastapi.testclient import TestClient

from trafficnews_app import deps, models  # noqa: F401  (registers tables)
from trafficnews_app.connectors.nominatim import NominatimClient
from trafficnews_app.database import Base, make_engine, make_session_factory
from trafficnews_app.main import app
from trafficnews_app.schemas import IncidentRecord
from trafficnews_app.services.admission import SubmissionAdmission
from trafficnews_app.services.incidents import IncidentService
from trafficnews_app.services.query import FilterSessions, QueryPipeline, SearchHistory
from trafficnews_app.services.scheduler import RefreshScheduler
from trafficnews_app.services.submission_queue import OfflineSubmissionQueue
from trafficnews_app.stores import IncidentStore, RouteStore, SubmissionStore


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def make_incident(ident: str, minutes: int = 0, **overrides) -> IncidentRecord:
    """Build an incident whose timestamp is ``minutes`` after a fixed base."""
    values: Dict[str, Any] = {
        "id": ident,
        "type": "accident",
        "severity": "medium",
        "location": f"Main St #{ident}",
        "description": None,
        "timestamp": datetime(2026, 10, 1, 8, 0, 0) + timedelta(minutes=minutes),
        "status": "pending",
    }
    values.update(overrides)
    return IncidentRecord(**values)


# ============================================================================
# Persistence
# ============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    eng = make_engine("sqlite://")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def incident_store(session_factory) -> IncidentStore:
    return IncidentStore(session_factory)


@pytest.fixture
def submission_store(session_factory) -> SubmissionStore:
    return SubmissionStore(session_factory)


@pytest.fixture
def route_store(session_factory) -> RouteStore:
    return RouteStore(session_factory)


# ============================================================================
# Services
# ============================================================================


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def pipeline() -> QueryPipeline:
    return QueryPipeline(SearchHistory(10))


@pytest.fixture
def incident_service(incident_store, pipeline) -> IncidentService:
    return IncidentService(incident_store, pipeline, FilterSessions(max_sessions=50))


@pytest.fixture
def queue(submission_store) -> OfflineSubmissionQueue:
    return OfflineSubmissionQueue(submission_store)


@pytest.fixture
def admission(clock) -> SubmissionAdmission:
    return SubmissionAdmission(limit=5, window_ms=3_600_000, clock=clock)


@pytest.fixture
def publish_scheduler():
    """Scheduler with a no-op callback; always stopped on teardown."""
    sched = RefreshScheduler(lambda: None, interval_ms=60_000, min_interval_ms=5_000, name="publish")
    yield sched
    sched.stop()


def _nominatim_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/search":
        if request.url.params.get("q") == "Nowhere":
            return httpx.Response(200, json=[])
        return httpx.Response(200, json=[{"lat": "40.7128", "lon": "-74.0060", "display_name": "New York"}])
    if request.url.path == "/reverse":
        return httpx.Response(200, json={"display_name": "Times Square, New York"})
    return httpx.Response(404)


@pytest.fixture
def geocoder() -> NominatimClient:
    return NominatimClient(base_url="https://geo.test", transport=httpx.MockTransport(_nominatim_handler))


# ============================================================================
# API
# ============================================================================


@pytest.fixture
def api(incident_service, queue, route_store, admission, publish_scheduler, geocoder):
    """TestClient wired to per-test services through dependency overrides."""
    app.dependency_overrides[deps.get_incident_service] = lambda: incident_service
    app.dependency_overrides[deps.get_submission_queue] = lambda: queue
    app.dependency_overrides[deps.get_route_store] = lambda: route_store
    app.dependency_overrides[deps.get_admission] = lambda: admission
    app.dependency_overrides[deps.get_publish_scheduler] = lambda: publish_scheduler
    app.dependency_overrides[deps.get_geocoder] = lambda: geocoder
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def valid_payload() -> Dict[str, Any]:
    return {
        "type": "accident",
        "severity": "high",
        "location": "I-95 near Exit 4",
        "latitude": 40.71,
        "longitude": -74.0,
        "description": "Two cars, right lane blocked",
        "reporterId": "u1",
    }
