from __future__ import annotations

import logging

from sensorwriter.core.errors import StoreFailure
from sensorwriter.models.device import Sensor
from sensorwriter.repositories.base import SORT_KEY, PartitionStore
from sensorwriter.repositories.partitions import readings_partition

logger = logging.getLogger(__name__)

SAMPLE_FREQUENCY_TOLERANCE = 3


class ThrottleEvaluator:
    """Drops readings that arrive faster than a sensor's sample frequency allows."""

    def __init__(self, store: PartitionStore, *, fail_open: bool = True) -> None:
        self._store = store
        self._fail_open = fail_open

    def last_reading_timestamp(self, sensor: Sensor, reading_timestamp: int) -> int | None:
        rows = self._store.query(
            readings_partition(reading_timestamp),
            sensor.record_id,
            descending=True,
            limit=1,
        )
        for row in rows:
            return int(row[SORT_KEY])
        return None

    def _partition_missing(self, reading_timestamp: int) -> bool:
        try:
            return not self._store.partition_exists(readings_partition(reading_timestamp))
        except StoreFailure:
            return False

    def should_evaluate(self, reading_timestamp: int, sensor: Sensor) -> bool:
        try:
            last_timestamp = self.last_reading_timestamp(sensor, reading_timestamp)
        except (StoreFailure, KeyError, TypeError, ValueError) as e:
            if isinstance(e, StoreFailure) and self._partition_missing(reading_timestamp):
                # No partition for the month yet, so no earlier reading either.
                logger.debug(f"No readings partition yet for sensor {sensor.id}")
                return True
            if not self._fail_open:
                raise
            logger.warning(
                "Error while looking up timestamp of last reading for sensor, "
                f"proceeding anyway: sensor_id={sensor.id}, error={e}"
            )
            return True

        if last_timestamp is None:
            return True

        elapsed = reading_timestamp - last_timestamp
        logger.debug(f"Seconds since last reading was written: {elapsed}")
        if elapsed < sensor.sample_frequency - SAMPLE_FREQUENCY_TOLERANCE:
            logger.info(
                f"Ignoring reading for sensor {sensor.id} due to sample frequency limit "
                f"({sensor.sample_frequency} seconds)"
            )
            return False
        return True
