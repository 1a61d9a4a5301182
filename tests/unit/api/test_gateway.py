"""Tests for the API Gateway.

These tests verify that:
1. /v1/verify reports neighbours in the documented JSON shape
2. Invalid requests are rejected with a plain status message
3. Service errors map to 400 or 500
"""

import logging
import uuid
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from ipverify.api.gateway import ServiceManager, create_app
from ipverify.common.exceptions import (
    DuplicateEventError,
    LocationNotFoundError,
    StoreError,
)
from ipverify.geo.lookup import StaticLookup
from ipverify.service import VerificationService
from ipverify.store import InMemoryEventStore
from tests.fixtures.login_events import (
    BROWN_ADDR,
    FAU_ADDR,
    LOCATIONS,
    NOW,
    ago,
)


@pytest.fixture
def verification_service():
    """Service over an in-memory store and the static university lookup."""
    return VerificationService(
        store=InMemoryEventStore(), lookup=StaticLookup(LOCATIONS)
    )


@pytest.fixture
def client(verification_service):
    """Create a test client for the API."""
    return TestClient(create_app(verification_service))


@pytest.fixture
def mock_service():
    """Service double for error mapping tests."""
    return MagicMock(spec=VerificationService)


@pytest.fixture
def mock_client(mock_service):
    return TestClient(create_app(mock_service), raise_server_exceptions=False)


@pytest.fixture(autouse=True)
def reset_service_manager():
    yield
    ServiceManager._instance = None
    ServiceManager._initialized = False


def login(username="bob", timestamp=NOW, ip=BROWN_ADDR, event_uuid=None) -> dict:
    return {
        "username": username,
        "unix_timestamp": timestamp,
        "event_uuid": event_uuid or str(uuid.uuid4()),
        "ip_address": ip,
    }


class TestStatusEndpoints:
    """Tests for /v1/status, /health and /ready."""

    def test_status_message(self, client):
        response = client.get("/v1/status")

        assert response.status_code == 200
        assert response.json() == {"status": "IP verify service is up and running"}

    def test_health_check_returns_healthy(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "ipverify-gateway"

    def test_ready_with_explicit_service(self, client):
        response = client.get("/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_request_id_header(self, client):
        response = client.get("/v1/status")
        assert response.headers["X-Request-ID"].startswith("req_")


class TestVerifyEndpoint:
    """Tests for POST /v1/verify."""

    def test_first_login_has_only_current_geo(self, client):
        response = client.post("/v1/verify", json=login())

        assert response.status_code == 200
        assert response.json() == {
            "currentGeo": {"lat": 41.8244, "lon": -71.408, "radius": 5},
        }

    def test_impossible_travel_from_preceding_login(self, client):
        client.post("/v1/verify", json=login(ip=FAU_ADDR, timestamp=ago(1)))

        response = client.post("/v1/verify", json=login(ip=BROWN_ADDR))

        assert response.status_code == 200
        data = response.json()
        assert data["travelToCurrentGeoSuspicious"] is True
        assert data["precedingIpAccess"] == {
            "ip": FAU_ADDR,
            "speed": 1176,
            "lat": 26.3796,
            "lon": -80.1029,
            "radius": 5,
            "timestamp": ago(1),
        }
        assert "travelFromCurrentGeoSuspicious" not in data
        assert "subsequentIpAccess" not in data

    def test_plausible_travel_to_subsequent_login(self, client):
        client.post("/v1/verify", json=login(ip=FAU_ADDR, timestamp=NOW))

        response = client.post("/v1/verify", json=login(ip=BROWN_ADDR, timestamp=ago(72)))

        data = response.json()
        assert data["travelFromCurrentGeoSuspicious"] is False
        assert data["subsequentIpAccess"]["speed"] == 16
        assert data["subsequentIpAccess"]["timestamp"] == NOW
        assert "precedingIpAccess" not in data

    def test_replayed_event_is_rejected(self, client):
        payload = login()
        assert client.post("/v1/verify", json=payload).status_code == 200

        response = client.post("/v1/verify", json=payload)

        assert response.status_code == 400
        assert response.json() == {"status": f"duplicate event id: {payload['event_uuid']}"}

    def test_unlocatable_address_is_client_error(self, client):
        response = client.post("/v1/verify", json=login(ip="10.1.2.3"))

        assert response.status_code == 400
        assert "status" in response.json()


class TestVerifyValidation:
    """Request validation messages."""

    @pytest.mark.parametrize(
        "overrides,message",
        [
            ({"username": ""}, "missing username"),
            ({"unix_timestamp": 0}, "invalid timestamp: 0"),
            ({"unix_timestamp": -5}, "invalid timestamp: -5"),
            ({"unix_timestamp": 2 ** 63}, f"invalid timestamp: {2 ** 63}"),
            ({"event_uuid": "not-a-uuid"}, "invalid UUID: not-a-uuid"),
            ({"ip_address": "131.91.101"}, "invalid IP address: 131.91.101"),
        ],
    )
    def test_invalid_field(self, client, overrides, message):
        payload = {**login(), **overrides}

        response = client.post("/v1/verify", json=payload)

        assert response.status_code == 400
        assert response.json() == {"status": message}

    def test_timestamp_bounds_agree_across_stores(self, service):
        """Both store backends accept the largest storable timestamp and nothing beyond."""
        client = TestClient(create_app(service))

        largest = client.post("/v1/verify", json=login(timestamp=2 ** 63 - 1))
        too_large = client.post("/v1/verify", json=login(timestamp=2 ** 63))

        assert largest.status_code == 200
        assert too_large.status_code == 400
        assert too_large.json() == {"status": f"invalid timestamp: {2 ** 63}"}
        assert len(service.store.get_all_rows()) == 1

    def test_missing_field_uses_default(self, client):
        payload = login()
        del payload["username"]

        response = client.post("/v1/verify", json=payload)

        assert response.status_code == 400
        assert response.json() == {"status": "missing username"}

    def test_invalid_request_is_not_stored(self, client, verification_service):
        client.post("/v1/verify", json={**login(), "ip_address": "bogus"})
        assert verification_service.store.get_all_rows() == []

    def test_malformed_json(self, client):
        response = client.post(
            "/v1/verify",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert "status" in response.json()


class TestErrorMapping:
    """Service exceptions become status responses."""

    def test_duplicate_is_400(self, mock_client, mock_service):
        mock_service.verify_event.side_effect = DuplicateEventError("abc")

        response = mock_client.post("/v1/verify", json=login())

        assert response.status_code == 400
        assert response.json() == {"status": "duplicate event id: abc"}

    def test_error_code_and_details_logged(self, mock_client, mock_service, caplog):
        mock_service.verify_event.side_effect = DuplicateEventError("abc")

        with caplog.at_level(logging.ERROR, logger="ipverify.api.gateway"):
            mock_client.post("/v1/verify", json=login())

        record = next(r for r in caplog.records if r.getMessage() == "Invoke error")
        assert record.error_code == "DUPLICATE_EVENT"
        assert record.details == {"event_id": "abc"}
        assert record.status_code == 400

    def test_location_not_found_is_400(self, mock_client, mock_service):
        mock_service.verify_event.side_effect = LocationNotFoundError("10.0.0.1")

        response = mock_client.post("/v1/verify", json=login())

        assert response.status_code == 400

    def test_store_error_is_500(self, mock_client, mock_service):
        mock_service.verify_event.side_effect = StoreError("disk I/O error")

        response = mock_client.post("/v1/verify", json=login())

        assert response.status_code == 500
        assert response.json() == {"status": "disk I/O error"}

    def test_unexpected_error_is_sanitized(self, mock_client, mock_service):
        mock_service.verify_event.side_effect = RuntimeError("secret internals")

        response = mock_client.post("/v1/verify", json=login())

        assert response.status_code == 500
        assert "secret" not in response.text


class TestResetEndpoint:
    """Tests for GET /v1/reset."""

    def test_reset_clears_history(self, client, verification_service):
        client.post("/v1/verify", json=login(ip=FAU_ADDR, timestamp=ago(1)))

        response = client.get("/v1/reset")

        assert response.status_code == 200
        assert response.json() == {"status": "reset"}
        assert verification_service.store.get_all_rows() == []

        after = client.post("/v1/verify", json=login(ip=BROWN_ADDR))
        assert "precedingIpAccess" not in after.json()

    def test_reset_failure_is_500(self, mock_client, mock_service):
        mock_service.reset.side_effect = StoreError("cannot clear")

        response = mock_client.get("/v1/reset")

        assert response.status_code == 500
        assert response.json() == {"status": "cannot clear"}


class TestLifespan:
    """Startup installs the service and shutdown releases it."""

    def test_shutdown_releases_service(self, mock_service):
        with TestClient(create_app(mock_service)) as client:
            assert client.get("/v1/status").status_code == 200
            assert ServiceManager._instance is mock_service

        mock_service.shutdown.assert_called_once()
        assert ServiceManager._instance is None
