from __future__ import annotations

from types import SimpleNamespace

from fastapi.testclient import TestClient

from sensorwriter.api import deps
from sensorwriter.services.aggregates import KeyedLock
from tests.fakes import FakePartitionStore, add_relay, add_sensor, epoch

T0 = epoch(2025, 10, 9, 8, 10, 0)


def _body(**overrides) -> dict:
    body = {
        "relay_id": "relay-1",
        "sensor_id": "s-1",
        "reading_timestamp": T0,
        "reporting_timestamp": T0 + 1,
        "measurements": [{"name": "temperature", "value": 21.5, "unit": "C"}],
    }
    body.update(overrides)
    return body


def test_root(client: TestClient) -> None:
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_write_reading(client: TestClient, store: FakePartitionStore) -> None:
    resp = client.post("/api/v1/readings", json=_body())
    assert resp.status_code == 201, resp.text
    assert resp.json() == {"status": "recorded"}
    assert len(store.items("readings_2025-10")) == 1


def test_throttled_reading_is_accepted(client: TestClient, store: FakePartitionStore) -> None:
    add_sensor(store, "s-1", "acct-1")
    client.post("/api/v1/readings", json=_body())

    resp = client.post("/api/v1/readings", json=_body(reading_timestamp=T0 + 10))
    assert resp.status_code == 202, resp.text
    assert resp.json() == {"status": "throttled"}


def test_inactive_relay_is_rejected(client: TestClient, store: FakePartitionStore) -> None:
    add_relay(store, "relay-off", "acct-1", state="inactive")
    resp = client.post("/api/v1/readings", json=_body(relay_id="relay-off"))
    assert resp.status_code == 422
    assert "not active" in resp.json()["detail"]


def test_empty_measurements_are_rejected(client: TestClient) -> None:
    resp = client.post("/api/v1/readings", json=_body(measurements=[]))
    assert resp.status_code == 422


def test_malformed_message_is_rejected(client: TestClient) -> None:
    resp = client.post("/api/v1/readings", json={"relay_id": "relay-1"})
    assert resp.status_code == 422


def test_store_failure_maps_to_503(client: TestClient, store: FakePartitionStore) -> None:
    store.fail_next("get_item", "relays")
    resp = client.post("/api/v1/readings", json=_body())
    assert resp.status_code == 503
    assert resp.json()["detail"] == "Store unavailable"


def test_health(client: TestClient, store: FakePartitionStore) -> None:
    assert client.get("/api/v1/health").status_code == 200
    store.healthy = False
    assert client.get("/api/v1/health").status_code == 503


def test_requests_share_the_application_lock(client: TestClient) -> None:
    locks = client.app.state.aggregate_locks
    assert isinstance(locks, KeyedLock)
    request = SimpleNamespace(app=client.app)
    assert deps.get_aggregate_locks(request) is locks
    assert deps.get_aggregate_locks(request) is locks
