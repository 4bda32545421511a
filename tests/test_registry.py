from __future__ import annotations

import pytest

from sensorwriter.core.errors import RelayNotFound
from sensorwriter.services.registry import SENSORS_PARTITION, DeviceRegistry
from tests.fakes import FakePartitionStore, add_relay, add_sensor


def test_get_relay(store: FakePartitionStore) -> None:
    relay = DeviceRegistry(store).get_relay("relay-1")
    assert relay.account_id == "acct-1"
    assert relay.is_active


def test_get_relay_not_found(store: FakePartitionStore) -> None:
    with pytest.raises(RelayNotFound):
        DeviceRegistry(store).get_relay("nope")


def test_inactive_relay(store: FakePartitionStore) -> None:
    add_relay(store, "relay-2", "acct-1", state="disabled")
    assert not DeviceRegistry(store).get_relay("relay-2").is_active


def test_get_sensor_absent_is_none(store: FakePartitionStore) -> None:
    assert DeviceRegistry(store).get_sensor("s-1", "acct-1") is None


def test_get_sensor_defaults_sample_frequency(store: FakePartitionStore) -> None:
    add_sensor(store, "s-1", "acct-1", sample_frequency=None)
    sensor = DeviceRegistry(store).get_sensor("s-1", "acct-1")
    assert sensor is not None
    assert sensor.sample_frequency == 60
    assert sensor.latitude == 0.0 and sensor.longitude == 0.0


def test_get_sensor_reads_location_only_when_both_coordinates_present(
    store: FakePartitionStore,
) -> None:
    add_sensor(store, "s-1", "acct-1", location_enabled=True, latitude=59.9)
    add_sensor(store, "s-2", "acct-1", location_enabled=True, latitude=59.9, longitude=10.7)
    registry = DeviceRegistry(store)

    assert registry.get_sensor("s-1", "acct-1").latitude == 0.0
    located = registry.get_sensor("s-2", "acct-1")
    assert (located.latitude, located.longitude) == (59.9, 10.7)
    assert located.has_location


def test_create_sensor_writes_defaults(store: FakePartitionStore) -> None:
    creation = DeviceRegistry(store).create_sensor("s-9", "acct-1")

    assert creation.persisted
    assert creation.sensor.sample_frequency == 60
    assert creation.sensor.state == "active"
    rows = store.items(SENSORS_PARTITION)
    assert rows == [
        {
            "id": "s-9",
            "account_id": "acct-1",
            "name": " ",
            "state": "active",
            "sample_frequency": 60,
            "location_enabled": False,
        }
    ]


def test_create_sensor_write_failure_is_reported_not_raised(store: FakePartitionStore) -> None:
    store.fail_next("put_item", SENSORS_PARTITION)
    creation = DeviceRegistry(store).create_sensor("s-9", "acct-1")

    assert not creation.persisted
    assert creation.sensor.id == "s-9"
    assert store.items(SENSORS_PARTITION) == []
