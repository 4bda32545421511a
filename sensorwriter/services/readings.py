from __future__ import annotations

import logging

from sensorwriter.models.device import Sensor
from sensorwriter.repositories.base import PARTITION_KEY, SORT_KEY, Item
from sensorwriter.repositories.partitions import PartitionProvisioner, readings_partition
from sensorwriter.schemas.readings import SensorReadingMessage, dump_measurements

logger = logging.getLogger(__name__)


def build_reading_item(message: SensorReadingMessage, sensor: Sensor) -> Item:
    item: Item = {
        PARTITION_KEY: sensor.record_id,
        SORT_KEY: message.reading_timestamp,
        "account_id": sensor.account_id,
        "relay_id": message.relay_id,
        "sensor_id": sensor.id,
        "measurements": dump_measurements(message.measurements),
    }
    if sensor.has_location:
        item["latitude"] = float(sensor.latitude)
        item["longitude"] = float(sensor.longitude)
    return item


class RawReadingWriter:
    def __init__(self, provisioner: PartitionProvisioner) -> None:
        self._provisioner = provisioner

    def record(self, message: SensorReadingMessage, sensor: Sensor, reading_timestamp: int) -> str:
        """Persist the full reading and return the partition it landed in."""
        partition = readings_partition(reading_timestamp)
        item = build_reading_item(message, sensor)
        self._provisioner.put_with_provisioning(partition, item)
        logger.debug(f"Recorded reading for {sensor.record_id} at {reading_timestamp} in {partition}")
        return partition
