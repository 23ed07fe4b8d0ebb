"""
Tests for the REST API.

Routes run against a registry backed by in-memory stores; the
TestClient context keeps one event loop alive so session loops keep
running between requests.
"""

import time

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from app.api.v1.router import api_router
from app.features.tracking.registry import SessionRegistry

from tests.fakes import ACCOUNT_ID

BASE = f"/api/v1/accounts/{ACCOUNT_ID}"

SAMPLE = {
    "latitude": 22.3364,
    "longitude": 114.1463,
    "altitude": 120.5,
    "speed": 1.2,
    "timestamp": "2026-05-01T08:00:00Z",
}


@pytest.fixture
def registry(record_store, share_store, dispatcher, timings):
    return SessionRegistry(record_store, share_store, dispatcher, timings)


@pytest.fixture
def client(registry):
    app = FastAPI()
    app.include_router(api_router, prefix="/api/v1")
    app.state.registry = registry
    with TestClient(app) as client:
        yield client


def authorize(client):
    client.put(f"{BASE}/location/authorization", json={"status": "authorized_when_in_use"})
    client.post(f"{BASE}/location", json=SAMPLE)


def poll(fetch, condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while True:
        data = fetch()
        if condition(data) or time.monotonic() > deadline:
            return data
        time.sleep(0.01)


# =============================================================================
# Test Location
# =============================================================================

class TestLocation:

    def test_authorization_and_push(self, client, registry):
        response = client.put(
            f"{BASE}/location/authorization", json={"status": "authorized_always"}
        )
        assert response.status_code == 200
        assert response.json()["authorization"] == "authorized_always"

        response = client.post(f"{BASE}/location", json=SAMPLE)
        assert response.status_code == 200
        point = registry.provider(ACCOUNT_ID).current_position()
        assert point.altitude == 120.5
        assert point.timestamp.tzinfo is None

    def test_invalid_latitude(self, client):
        response = client.post(f"{BASE}/location", json={**SAMPLE, "latitude": 95})
        assert response.status_code == 422

    def test_permission_request_is_visible(self, client):
        client.post(f"{BASE}/hike/start")
        status = client.get(f"{BASE}/location").json()
        assert status["permission_requested"] is True
        assert status["updates_requested"] is True
        client.post(f"{BASE}/hike/stop")


# =============================================================================
# Test Hikes
# =============================================================================

class TestHikes:

    def test_full_hike(self, client):
        authorize(client)

        started = client.post(f"{BASE}/hike/start", json={"trail_name": "Dragon's Back"}).json()
        assert started == {"changed": True, "state": "tracking", "last_error": None}

        live = poll(
            lambda: client.get(f"{BASE}/hike").json(),
            lambda data: data["point_count"] > 0,
        )
        assert live["state"] == "tracking"
        assert live["current_altitude"] == 120.5
        assert live["current_speed_kmh"] == pytest.approx(4.32)

        assert client.post(f"{BASE}/hike/pause").json()["state"] == "paused"
        assert client.post(f"{BASE}/hike/resume").json()["state"] == "tracking"
        stopped = client.post(f"{BASE}/hike/stop").json()
        assert stopped["changed"] is True
        assert stopped["state"] == "stopped"
        assert client.post(f"{BASE}/hike/stop").json()["changed"] is False

        hikes = client.get(f"{BASE}/hikes").json()
        assert len(hikes) == 1
        assert hikes[0]["is_completed"] is True
        assert hikes[0]["trail_name"] == "Dragon's Back"

        record_id = hikes[0]["id"]
        detail = client.get(f"{BASE}/hikes/{record_id}").json()
        assert len(detail["track_points"]) == detail["point_count"]

        gpx = client.get(f"{BASE}/hikes/{record_id}/gpx")
        assert gpx.status_code == 200
        assert gpx.headers["content-type"].startswith("application/gpx+xml")
        assert "<gpx" in gpx.text

        assert client.delete(f"{BASE}/hikes/{record_id}").status_code == 204
        assert client.get(f"{BASE}/hikes/{record_id}").status_code == 404

    def test_noop_transitions(self, client):
        assert client.post(f"{BASE}/hike/pause").json() == {
            "changed": False,
            "state": "idle",
            "last_error": None,
        }
        assert client.post(f"{BASE}/hike/stop").json()["changed"] is False

    def test_checkpoint_without_hike(self, client):
        assert client.post(f"{BASE}/hike/checkpoint").status_code == 409

    def test_checkpoint(self, client, record_store):
        client.post(f"{BASE}/hike/start")
        response = client.post(f"{BASE}/hike/checkpoint")
        client.post(f"{BASE}/hike/stop")

        assert response.status_code == 200
        assert response.json()["state"] == "tracking"
        assert record_store.save_count == 2

    def test_records_are_scoped_to_account(self, client):
        client.post(f"{BASE}/hike/start")
        client.post(f"{BASE}/hike/stop")
        record_id = client.get(f"{BASE}/hikes").json()[0]["id"]

        response = client.get(f"/api/v1/accounts/acc-2/hikes/{record_id}")
        assert response.status_code == 404

    def test_filter_by_trail(self, client):
        client.post(f"{BASE}/hike/start", json={"trail_id": "trail-1"})
        client.post(f"{BASE}/hike/stop")
        client.post(f"{BASE}/hike/start", json={"trail_id": "trail-2"})
        client.post(f"{BASE}/hike/stop")

        hikes = client.get(f"{BASE}/hikes", params={"trail_id": "trail-2"}).json()
        assert [h["trail_id"] for h in hikes] == ["trail-2"]


# =============================================================================
# Test Sharing
# =============================================================================

class TestSharing:

    def test_start_status_stop(self, client):
        authorize(client)

        started = client.post(f"{BASE}/sharing/start").json()
        assert started["changed"] is True

        status = poll(
            lambda: client.get(f"{BASE}/sharing").json(),
            lambda data: data["share_session"]["share_link"] is not None,
        )
        assert status["is_sharing"] is True
        assert status["share_session"]["last_latitude"] == SAMPLE["latitude"]

        link = client.get(f"{BASE}/sharing/link").json()["share_link"]
        assert link.endswith("?q=22.3364,114.1463")

        stopped = client.post(f"{BASE}/sharing/stop").json()
        assert stopped["state"] == "stopped"
        assert client.get(f"{BASE}/sharing").json()["share_session"]["is_active"] is False

    def test_link_without_position(self, client):
        assert client.get(f"{BASE}/sharing/link").status_code == 409

    def test_sos(self, client, dispatcher):
        authorize(client)

        response = client.post(f"{BASE}/sos", json={"message": "Need help at the pavilion"})

        assert response.status_code == 200
        assert response.json() == {
            "sms_sent": 2,
            "emails_sent": 1,
            "delivered": 3,
            "failures": [],
        }
        assert "Need help at the pavilion" in dispatcher.sms[0][1]

    def test_sos_without_contacts(self, client, share_store, dispatcher):
        share_store.contacts = []
        authorize(client)

        response = client.post(f"{BASE}/sos", json={})

        assert response.status_code == 409
        assert dispatcher.call_count == 0

    def test_sos_without_position(self, client):
        assert client.post(f"{BASE}/sos", json={}).status_code == 409

    def test_sos_contact_store_down(self, client, share_store):
        share_store.fail_contacts = True
        authorize(client)
        assert client.post(f"{BASE}/sos", json={}).status_code == 502


# =============================================================================
# Test Contacts
# =============================================================================

class TestContacts:

    def test_add_list_remove(self, client):
        response = client.post(
            f"{BASE}/contacts",
            json={"name": " Dan ", "phone_number": "+85290000004"},
        )
        assert response.status_code == 201
        contact = response.json()
        assert contact["name"] == "Dan"

        names = [c["name"] for c in client.get(f"{BASE}/contacts").json()]
        assert names == ["Alice", "Bob", "Dan"]

        assert client.delete(f"{BASE}/contacts/{contact['id']}").status_code == 204
        assert client.delete(f"{BASE}/contacts/{contact['id']}").status_code == 404

    def test_contact_needs_a_channel(self, client):
        response = client.post(f"{BASE}/contacts", json={"name": "Eve"})
        assert response.status_code == 400

    def test_contact_needs_a_name(self, client):
        response = client.post(f"{BASE}/contacts", json={"name": "", "phone_number": "+1"})
        assert response.status_code == 422


# =============================================================================
# Test Wiring
# =============================================================================

def test_registry_missing():
    app = FastAPI()
    app.include_router(api_router, prefix="/api/v1")
    with TestClient(app) as client:
        assert client.get(f"{BASE}/hike").status_code == 503


def test_health():
    from app.main import app

    response = TestClient(app).get("/health")
    assert response.json()["status"] == "healthy"
