"""Tests for turning pending submissions into confirmed incidents."""

from unittest.mock import MagicMock

from trafficnews_app.errors import StorageFailure
from trafficnews_app.services.incidents import IncidentService
from trafficnews_app.services.publisher import publish_pending


def test_valid_submission_becomes_confirmed_incident(queue, incident_service):
    sub = queue.enqueue({"type": "closure", "severity": "medium", "location": "Canal St",
                         "reporterId": "u7"})

    report = publish_pending(queue, incident_service)

    assert report.as_dict() == {"total": 1, "sent": 1, "failed": 0, "processed": 1}
    incident = incident_service.get(f"inc_{sub.id}")
    assert incident.status == "confirmed"
    assert incident.submission_id == sub.id
    assert incident.reporter_id == "u7"
    assert queue.get(sub.id).status == "sent"


def test_invalid_submission_is_marked_failed(queue, incident_service, incident_store):
    sub = queue.enqueue({"type": "asteroid", "severity": "medium", "location": "Canal St"})

    report = publish_pending(queue, incident_service)

    assert report.failed == 1
    assert report.sent == 0
    assert queue.get(sub.id).status == "failed"
    assert incident_store.get_all() == []


def test_storage_failure_marks_failed_and_continues(queue):
    good = queue.enqueue({"type": "hazard", "severity": "low", "location": "A"})
    second = queue.enqueue({"type": "hazard", "severity": "low", "location": "B"})
    svc = MagicMock(spec=IncidentService)
    svc.create.side_effect = StorageFailure("incidents.save failed")

    report = publish_pending(queue, svc)

    assert report.total == 2
    assert report.failed == 2
    assert queue.get(good.id).status == "failed"
    assert queue.get(second.id).status == "failed"


def test_nothing_pending(queue, incident_service):
    assert publish_pending(queue, incident_service).processed == 0
