"""HTTP-level tests for the FastAPI app."""

from unittest.mock import MagicMock

from conftest import make_incident
from trafficnews_app import deps
from trafficnews_app.errors import StorageFailure
from trafficnews_app.main import app
from trafficnews_app.services.submission_queue import OfflineSubmissionQueue


def _create(api, **overrides):
    body = {"type": "accident", "severity": "medium", "location": "Broadway",
            "description": "Stalled bus"}
    body.update(overrides)
    resp = api.post("/api/incidents", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_healthz(api):
    resp = api.get("/healthz")

    assert resp.status_code == 200
    assert resp.json()["ok"] is True


class TestIncidentsApi:
    def test_create_and_get(self, api):
        created = _create(api, latitude=40.0)

        resp = api.get(f"/api/incidents/{created['id']}")

        assert resp.status_code == 200
        assert resp.json()["location"] == "Broadway"
        assert resp.json()["status"] == "pending"
        assert "reporterId" in resp.json()

    def test_create_invalid_returns_every_error(self, api):
        resp = api.post("/api/incidents", json={"type": "x", "severity": "y", "location": ""})

        assert resp.status_code == 400
        assert len(resp.json()["errors"]) == 3

    def test_unknown_id_is_404(self, api):
        assert api.get("/api/incidents/nope").status_code == 404
        assert api.delete("/api/incidents/nope").status_code == 404
        assert api.patch("/api/incidents/nope", json={"severity": "low"}).status_code == 404

    def test_list_filters_searches_and_sorts(self, api, incident_store):
        incident_store.save(make_incident("a", 0, severity="low", description="oil spill"))
        incident_store.save(make_incident("b", 1, severity="critical", description="oil tanker"))
        incident_store.save(make_incident("c", 2, severity="high", type="hazard", description="oil"))

        resp = api.get("/api/incidents", params={"type": "accident", "keyword": "OIL",
                                                 "sortBy": "severity", "order": "desc"})

        assert resp.status_code == 200
        assert [i["id"] for i in resp.json()["items"]] == ["b", "a"]
        assert api.get("/api/incidents/search-history").json()["items"] == ["oil"]

    def test_bad_sort_key_is_rejected(self, api):
        assert api.get("/api/incidents", params={"sortBy": "distance"}).status_code == 422

    def test_patch_clears_and_put_preserves(self, api):
        created = _create(api, latitude=10.0, longitude=20.0)
        url = f"/api/incidents/{created['id']}"

        put = api.put(url, json={"severity": "high", "description": None})
        assert put.status_code == 200
        assert put.json()["description"] == "Stalled bus"

        patch = api.patch(url, json={"description": None})
        assert patch.status_code == 200
        assert patch.json()["description"] is None
        assert patch.json()["severity"] == "high"
        assert patch.json()["latitude"] == 10.0

    def test_patch_cannot_clear_location(self, api):
        created = _create(api)

        resp = api.patch(f"/api/incidents/{created['id']}", json={"location": None})

        assert resp.status_code == 400
        assert "location cannot be cleared" in resp.json()["errors"]

    def test_delete(self, api):
        created = _create(api)

        assert api.delete(f"/api/incidents/{created['id']}").status_code == 200
        assert api.get(f"/api/incidents/{created['id']}").status_code == 404

    def test_filter_session_header(self, api, incident_store):
        incident_store.save(make_incident("a", 0, severity="high"))
        incident_store.save(make_incident("b", 1, severity="low", type="hazard"))
        headers = {"X-Filter-Session": "tab-1"}

        api.get("/api/incidents", params={"type": "accident"}, headers=headers)
        resp = api.get("/api/incidents", params={"severity": "high"}, headers=headers)

        assert [i["id"] for i in resp.json()["items"]] == ["a"]
        assert api.get("/api/filters", headers=headers).json()["filters"] == {
            "type": "accident", "severity": "high"}
        api.delete("/api/filters", headers=headers)
        assert api.get("/api/filters", headers=headers).json()["filters"] == {}

    def test_set_unknown_filter_is_400(self, api):
        resp = api.put("/api/filters/colour", params={"value": "red"}, headers={"X-Filter-Session": "s"})

        assert resp.status_code == 400


class TestSubmissionsApi:
    def test_submit_then_queue_then_sent(self, api, valid_payload):
        resp = api.post("/api/submissions", json=valid_payload)
        assert resp.status_code == 201
        sub_id = resp.json()["id"]

        queued = api.get("/api/submissions/queue").json()
        assert [s["id"] for s in queued["items"]] == [sub_id]

        assert api.post(f"/api/submissions/{sub_id}/sent").json() == {"ok": True, "id": sub_id, "status": "sent"}
        assert api.get("/api/submissions/queue").json()["count"] == 0
        assert api.post(f"/api/submissions/{sub_id}/failed").status_code == 409

    def test_invalid_submission_does_not_consume_quota(self, api, admission, valid_payload):
        bad = dict(valid_payload, severity="apocalyptic")

        resp = api.post("/api/submissions", json=bad)

        assert resp.status_code == 400
        assert admission.peek("u1").used == 0

    def test_reporter_required(self, api, valid_payload):
        payload = {k: v for k, v in valid_payload.items() if k != "reporterId"}

        resp = api.post("/api/submissions", json=payload)

        assert resp.status_code == 400
        assert resp.json()["errors"] == ["reporterId is required"]

    def test_sixth_submission_in_window_is_429(self, api, valid_payload):
        codes = [api.post("/api/submissions", json=valid_payload).status_code for _ in range(6)]

        assert codes == [201] * 5 + [429]
        assert api.get("/api/ratelimit/u1").json()["remaining"] == 0
        assert api.delete("/api/ratelimit/u1").json()["reset"] is True
        assert api.post("/api/submissions", json=valid_payload).status_code == 201

    def test_process_publishes_pending(self, api, valid_payload):
        sub_id = api.post("/api/submissions", json=valid_payload).json()["id"]

        report = api.post("/api/submissions/process").json()

        assert report["sent"] == 1
        incident = api.get(f"/api/incidents/inc_{sub_id}").json()
        assert incident["status"] == "confirmed"
        assert incident["submissionId"] == sub_id

    def test_location_empty_after_sanitising_is_rejected(self, api, admission, valid_payload):
        """Angle brackets are stripped before validation, so "<>" is no location."""
        resp = api.post("/api/submissions", json=dict(valid_payload, location="<>"))

        assert resp.status_code == 400
        assert resp.json()["errors"] == ["Location is required"]
        assert admission.peek("u1").used == 0
        assert api.get("/api/submissions/queue").json()["count"] == 0

    def test_queued_payload_is_sanitised_and_camel_case(self, api, valid_payload):
        body = dict(valid_payload, type="Accident", location="  <b>Elm St</b> ")
        sub_id = api.post("/api/submissions", json=body).json()["id"]

        payload = api.get(f"/api/submissions/{sub_id}").json()["payload"]

        assert payload["reporterId"] == "u1"
        assert "reporter_id" not in payload
        assert payload["location"] == "bElm St/b"
        assert payload["type"] == "accident"

    def test_failed_enqueue_returns_quota(self, api, admission, valid_payload):
        broken = MagicMock(spec=OfflineSubmissionQueue)
        broken.enqueue.side_effect = StorageFailure("submissions.save failed")
        app.dependency_overrides[deps.get_submission_queue] = lambda: broken

        resp = api.post("/api/submissions", json=valid_payload)

        assert resp.status_code == 500
        assert resp.json()["ok"] is False
        assert admission.peek("u1").used == 0

    def test_unknown_submission(self, api):
        assert api.get("/api/submissions/missing").status_code == 404
        assert api.post("/api/submissions/missing/sent").status_code == 404


class TestSchedulerApi:
    def test_start_stop_conflicts(self, api):
        assert api.post("/api/scheduler/stop").status_code == 409
        assert api.post("/api/scheduler/start").status_code == 200
        assert api.post("/api/scheduler/start").status_code == 409
        assert api.get("/api/scheduler").json()["running"] is True
        assert api.post("/api/scheduler/stop").status_code == 200

    def test_interval_floor(self, api):
        assert api.put("/api/scheduler/interval", json={"intervalMs": 1000}).status_code == 400
        resp = api.put("/api/scheduler/interval", json={"intervalMs": 15000})
        assert resp.status_code == 200
        assert resp.json()["intervalMs"] == 15000


class TestRoutesAndMapApi:
    def test_route_crud(self, api):
        created = api.post("/api/routes", json={"name": "Commute", "latitude": 40.7,
                                                "longitude": -74.0, "userId": "u1"})
        assert created.status_code == 201
        route_id = created.json()["id"]
        assert created.json()["radius"] == 1000

        updated = api.put(f"/api/routes/{route_id}", json={"radius": 2500})
        assert updated.json()["radius"] == 2500
        assert updated.json()["name"] == "Commute"

        listed = api.get("/api/routes", params={"userId": "u1"}).json()
        assert [r["id"] for r in listed["items"]] == [route_id]

        assert api.delete(f"/api/routes/{route_id}").status_code == 200
        assert api.get(f"/api/routes/{route_id}").status_code == 404

    def test_invalid_route(self, api):
        resp = api.post("/api/routes", json={"name": "", "radius": -5})

        assert resp.status_code == 400
        assert len(resp.json()["errors"]) == 2

    def test_geocode(self, api):
        resp = api.get("/api/map/geocode", params={"address": "New York"})

        assert resp.status_code == 200
        assert resp.json()["latitude"] == 40.7128

    def test_geocode_miss_is_502(self, api):
        assert api.get("/api/map/geocode", params={"address": "Nowhere"}).status_code == 502

    def test_reverse_validates_coordinates(self, api):
        assert api.get("/api/map/reverse", params={"lat": 95, "lon": 0}).status_code == 400
        resp = api.get("/api/map/reverse", params={"lat": 40.758, "lon": -73.9855})
        assert resp.json()["displayName"] == "Times Square, New York"

    def test_tile_url(self, api):
        resp = api.get("/api/map/tile-url", params={"z": 2, "x": 1, "y": 1})

        assert resp.json()["url"].endswith("/2/1/1.png")
