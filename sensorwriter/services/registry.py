from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sensorwriter.core.errors import RelayNotFound, StoreFailure
from sensorwriter.models.device import DEFAULT_SAMPLE_FREQUENCY, STATE_ACTIVE, Relay, Sensor
from sensorwriter.repositories.base import PARTITION_KEY, PartitionStore

logger = logging.getLogger(__name__)

RELAYS_PARTITION = "relays"
SENSORS_PARTITION = "sensors"
DEFAULT_SENSOR_NAME = " "

RELAY_ATTRIBUTES = ["account_id", "name", "state"]
SENSOR_ATTRIBUTES = [
    "name",
    "state",
    "account_id",
    "sample_frequency",
    "location_enabled",
    "latitude",
    "longitude",
]


@dataclass(frozen=True)
class SensorCreation:
    sensor: Sensor
    error: StoreFailure | None = None

    @property
    def persisted(self) -> bool:
        return self.error is None


class DeviceRegistry:
    def __init__(self, store: PartitionStore) -> None:
        self._store = store

    def get_relay(self, relay_id: str) -> Relay:
        item = self._store.get_item(
            RELAYS_PARTITION, {PARTITION_KEY: relay_id}, RELAY_ATTRIBUTES
        )
        if item is None:
            raise RelayNotFound(relay_id)
        return Relay(
            id=relay_id,
            account_id=str(item["account_id"]),
            name=str(item.get("name", "")),
            state=str(item.get("state", "")),
        )

    def get_sensor(self, sensor_id: str, account_id: str) -> Sensor | None:
        # account_id is not part of the sensor key; ownership is checked by the caller.
        item = self._store.get_item(
            SENSORS_PARTITION, {PARTITION_KEY: sensor_id}, SENSOR_ATTRIBUTES
        )
        if item is None:
            return None

        latitude = longitude = 0.0
        if item.get("latitude") is not None and item.get("longitude") is not None:
            latitude = _float_or_default(item["latitude"], 0.0)
            longitude = _float_or_default(item["longitude"], 0.0)

        return Sensor(
            id=sensor_id,
            account_id=str(item["account_id"]),
            name=str(item.get("name", "")),
            state=str(item.get("state", "")),
            sample_frequency=_int_or_default(
                item.get("sample_frequency"), DEFAULT_SAMPLE_FREQUENCY
            ),
            location_enabled=bool(item.get("location_enabled", False)),
            latitude=latitude,
            longitude=longitude,
        )

    def create_sensor(self, sensor_id: str, account_id: str) -> SensorCreation:
        sensor = Sensor(
            id=sensor_id,
            account_id=account_id,
            name=DEFAULT_SENSOR_NAME,
            state=STATE_ACTIVE,
            sample_frequency=DEFAULT_SAMPLE_FREQUENCY,
            location_enabled=False,
        )
        try:
            self._store.put_item(
                SENSORS_PARTITION,
                {
                    PARTITION_KEY: sensor.id,
                    "account_id": sensor.account_id,
                    "name": sensor.name,
                    "state": sensor.state,
                    "sample_frequency": sensor.sample_frequency,
                    "location_enabled": sensor.location_enabled,
                },
            )
        except StoreFailure as e:
            logger.error(f"Encountered error adding new sensor {sensor_id}: {e}")
            return SensorCreation(sensor=sensor, error=e)
        return SensorCreation(sensor=sensor)


def _int_or_default(v: Any, default: int) -> int:
    try:
        if v is None:
            return default
        return int(v)
    except (TypeError, ValueError):
        return default


def _float_or_default(v: Any, default: float) -> float:
    try:
        if v is None:
            return default
        return float(v)
    except (TypeError, ValueError):
        return default
