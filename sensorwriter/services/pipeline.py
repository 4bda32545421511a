from __future__ import annotations

import logging
import time
from enum import Enum

from sensorwriter.core.config import Settings
from sensorwriter.core.errors import AccountMismatch, EmptyMeasurements, RelayInactive
from sensorwriter.models.device import Sensor
from sensorwriter.repositories.base import PartitionStore
from sensorwriter.repositories.partitions import PartitionProvisioner, Sleeper
from sensorwriter.schemas.readings import SensorReadingMessage
from sensorwriter.services.aggregates import HourlyAggregateMerger, KeyedLock
from sensorwriter.services.readings import RawReadingWriter
from sensorwriter.services.registry import DeviceRegistry
from sensorwriter.services.throttle import ThrottleEvaluator

logger = logging.getLogger(__name__)


class WriteOutcome(str, Enum):
    RECORDED = "recorded"
    THROTTLED = "throttled"


class SensorReadingPipeline:
    """Validates a reading message, rate-limits it and stores it with its hourly rollup."""

    def __init__(
        self,
        *,
        registry: DeviceRegistry,
        throttle: ThrottleEvaluator,
        writer: RawReadingWriter,
        merger: HourlyAggregateMerger,
        sensor_write_failure_proceeds: bool = True,
    ) -> None:
        self._registry = registry
        self._throttle = throttle
        self._writer = writer
        self._merger = merger
        self._sensor_write_failure_proceeds = sensor_write_failure_proceeds

    @classmethod
    def build(
        cls,
        *,
        store: PartitionStore,
        settings: Settings,
        sleep: Sleeper = time.sleep,
        locks: KeyedLock | None = None,
    ) -> SensorReadingPipeline:
        provisioner = PartitionProvisioner(
            store=store, settle_seconds=settings.partition_settle_seconds, sleep=sleep
        )
        return cls(
            registry=DeviceRegistry(store),
            throttle=ThrottleEvaluator(store, fail_open=settings.throttle_fail_open),
            writer=RawReadingWriter(provisioner),
            merger=HourlyAggregateMerger(store=store, provisioner=provisioner, locks=locks),
            sensor_write_failure_proceeds=settings.sensor_write_failure_proceeds,
        )

    def resolve_sensor(self, message: SensorReadingMessage) -> Sensor:
        if not message.measurements:
            raise EmptyMeasurements()

        relay = self._registry.get_relay(message.relay_id)
        if not relay.is_active:
            raise RelayInactive(relay.id)

        sensor = self._registry.get_sensor(message.sensor_id, relay.account_id)
        if sensor is None:
            logger.info(f"Sensor not found, adding: {message.sensor_id}")
            creation = self._registry.create_sensor(message.sensor_id, relay.account_id)
            if creation.error is not None and not self._sensor_write_failure_proceeds:
                raise creation.error
            return creation.sensor

        if sensor.account_id != relay.account_id:
            logger.warning(
                "Sensor and Relay use different account IDs, ignoring: "
                f"sensor account={sensor.account_id}, relay account={relay.account_id}"
            )
            raise AccountMismatch(
                sensor_account_id=sensor.account_id, relay_account_id=relay.account_id
            )
        return sensor

    def write_sensor_reading(self, message: SensorReadingMessage) -> WriteOutcome:
        sensor = self.resolve_sensor(message)

        reading_timestamp = message.reading_timestamp
        if not self._throttle.should_evaluate(reading_timestamp, sensor):
            return WriteOutcome.THROTTLED

        self._writer.record(message, sensor, reading_timestamp)
        self._merger.merge_hourly(message, sensor, reading_timestamp)
        return WriteOutcome.RECORDED
