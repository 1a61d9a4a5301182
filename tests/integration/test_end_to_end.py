"""Integration tests for IPVerify.

End-to-end tests that drive the HTTP API over a file-backed SQLite store.
"""

import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from ipverify.api.gateway import ServiceManager, create_app
from ipverify.geo.lookup import StaticLookup
from ipverify.service import VerificationService
from ipverify.store import SQLiteEventStore
from tests.fixtures.login_events import (
    ARKANSAS_ADDR,
    BROWN_ADDR,
    FAU_ADDR,
    LOCATIONS,
    NOW,
    UCLA_ADDR,
    ago,
)


def login(username, ip, timestamp, event_uuid=None) -> dict:
    return {
        "username": username,
        "unix_timestamp": timestamp,
        "event_uuid": event_uuid or str(uuid.uuid4()),
        "ip_address": ip,
    }


class TestVerifyFlowIntegration:
    """Integration tests for the verify flow."""

    @pytest.fixture
    def db_file(self, tmp_path):
        return tmp_path / "requests.db"

    @pytest.fixture
    def service(self, db_file):
        svc = VerificationService(
            store=SQLiteEventStore(db_file), lookup=StaticLookup(LOCATIONS)
        )
        yield svc
        svc.shutdown()

    @pytest.fixture
    def client(self, service):
        with TestClient(create_app(service)) as c:
            yield c
        ServiceManager._instance = None
        ServiceManager._initialized = False

    def test_user_history_across_requests(self, client):
        """Logins arriving out of order see the right neighbours."""
        first = client.post("/v1/verify", json=login("angie", BROWN_ADDR, ago(200)))
        second = client.post("/v1/verify", json=login("angie", UCLA_ADDR, ago(148)))
        third = client.post("/v1/verify", json=login("angie", ARKANSAS_ADDR, ago(150)))

        assert [r.status_code for r in (first, second, third)] == [200, 200, 200]
        assert set(first.json()) == {"currentGeo"}
        assert second.json()["travelToCurrentGeoSuspicious"] is False

        data = third.json()
        assert data["precedingIpAccess"]["ip"] == BROWN_ADDR
        assert data["precedingIpAccess"]["speed"] == 26
        assert data["travelToCurrentGeoSuspicious"] is False
        assert data["subsequentIpAccess"]["ip"] == UCLA_ADDR
        assert data["subsequentIpAccess"]["speed"] == 688
        assert data["travelFromCurrentGeoSuspicious"] is True

    def test_users_do_not_see_each_other(self, client):
        client.post("/v1/verify", json=login("steve", UCLA_ADDR, ago(1)))

        response = client.post("/v1/verify", json=login("bob", BROWN_ADDR, NOW))

        assert set(response.json()) == {"currentGeo"}

    def test_rejected_requests_leave_no_trace(self, client, service):
        event_uuid = str(uuid.uuid4())
        assert client.post(
            "/v1/verify", json=login("bob", BROWN_ADDR, NOW, event_uuid)
        ).status_code == 200

        replay = client.post("/v1/verify", json=login("bob", FAU_ADDR, ago(1), event_uuid))
        invalid = client.post("/v1/verify", json=login("bob", "1.2.3", ago(2)))

        assert replay.status_code == 400
        assert invalid.status_code == 400
        assert len(service.store.get_all_rows()) == 1

    def test_reset_then_verify(self, client, service):
        client.post("/v1/verify", json=login("bob", FAU_ADDR, ago(1)))

        assert client.get("/v1/reset").json() == {"status": "reset"}
        response = client.post("/v1/verify", json=login("bob", BROWN_ADDR, NOW))

        assert set(response.json()) == {"currentGeo"}
        assert len(service.store.get_all_rows()) == 1

    def test_history_survives_restart(self, db_file):
        """A new service over the same file sees earlier logins."""
        first = VerificationService(
            store=SQLiteEventStore(db_file), lookup=StaticLookup(LOCATIONS)
        )
        with TestClient(create_app(first)) as c:
            c.post("/v1/verify", json=login("bob", FAU_ADDR, ago(1)))

        second = VerificationService(
            store=SQLiteEventStore(db_file), lookup=StaticLookup(LOCATIONS)
        )
        with TestClient(create_app(second)) as c:
            response = c.post("/v1/verify", json=login("bob", BROWN_ADDR, NOW))

        assert response.json()["precedingIpAccess"]["speed"] == 1176
        ServiceManager._instance = None
        ServiceManager._initialized = False


class TestConcurrentVerification:
    """Concurrent requests for one user."""

    @pytest.fixture
    def service(self, tmp_path):
        svc = VerificationService(
            store=SQLiteEventStore(tmp_path / "requests.db"),
            lookup=StaticLookup(LOCATIONS),
        )
        yield svc
        svc.shutdown()

    def test_parallel_logins_all_recorded(self, service):
        """Every login is stored once and each result is consistent."""
        addresses = [BROWN_ADDR, FAU_ADDR, UCLA_ADDR, ARKANSAS_ADDR]
        payloads = [
            login("bob", addresses[i % len(addresses)], NOW + i * 60)
            for i in range(40)
        ]
        client = TestClient(create_app(service))

        with ThreadPoolExecutor(max_workers=8) as pool:
            responses = list(pool.map(lambda p: client.post("/v1/verify", json=p), payloads))

        assert all(r.status_code == 200 for r in responses)
        rows = service.store.get_all_rows()
        assert len(rows) == 40
        assert {r.event_id for r in rows} == {p["event_uuid"] for p in payloads}

        for payload, response in zip(payloads, responses):
            data = response.json()
            if "precedingIpAccess" in data:
                assert data["precedingIpAccess"]["timestamp"] < payload["unix_timestamp"]
            if "subsequentIpAccess" in data:
                assert data["subsequentIpAccess"]["timestamp"] > payload["unix_timestamp"]

    def test_parallel_replays_accepted_once(self, service):
        payload = login("bob", BROWN_ADDR, NOW)
        client = TestClient(create_app(service))

        with ThreadPoolExecutor(max_workers=8) as pool:
            codes = list(pool.map(lambda _: client.post("/v1/verify", json=payload).status_code, range(16)))

        assert codes.count(200) == 1
        assert codes.count(400) == 15
        assert len(service.store.get_all_rows()) == 1
