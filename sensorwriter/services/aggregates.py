from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Hashable

from sensorwriter.core.errors import SerializationFailure, StoreFailure
from sensorwriter.models.device import Sensor
from sensorwriter.repositories.base import PARTITION_KEY, SORT_KEY, Item, PartitionStore
from sensorwriter.repositories.partitions import (
    PartitionProvisioner,
    hour_bucket,
    hourly_partition,
)
from sensorwriter.schemas.readings import (
    Measurement,
    MinMaxMeasurement,
    SensorReadingMessage,
    dump_min_max,
    load_min_max,
)

logger = logging.getLogger(__name__)

AGGREGATE_ATTRIBUTES = ["measurements"]


@dataclass(frozen=True)
class MergeResult:
    measurements: list[MinMaxMeasurement]
    dirty: bool


def merge_min_max(
    existing: list[MinMaxMeasurement] | None, incoming: list[Measurement]
) -> MergeResult:
    """Fold ``incoming`` into the hour's min/max entries.

    ``existing`` is None when no aggregate was stored for the hour yet. Entries whose name is
    absent from ``incoming`` are carried forward untouched. The result is dirty only when
    an extremum moved or a new name appeared, so re-applying the same readings is a no-op.
    """
    if existing is None:
        return MergeResult(
            measurements=[MinMaxMeasurement(name=m.name, min=m, max=m) for m in incoming],
            dirty=True,
        )

    incoming_names = {m.name for m in incoming}
    merged = [mm for mm in existing if mm.name not in incoming_names]
    dirty = False

    for m in incoming:
        current = next((mm for mm in existing if mm.name == m.name), None)
        if current is None:
            merged.append(MinMaxMeasurement(name=m.name, min=m, max=m))
            dirty = True
            continue

        new_min = current.min.value
        if m.value < new_min:
            new_min = m.value
            dirty = True
        new_max = current.max.value
        if m.value > new_max:
            new_max = m.value
            dirty = True

        merged.append(
            MinMaxMeasurement(
                name=m.name,
                min=Measurement(name=m.name, value=new_min, unit=m.unit),
                max=Measurement(name=m.name, value=new_max, unit=m.unit),
            )
        )

    return MergeResult(measurements=merged, dirty=dirty)


class KeyedLock:
    """Fixed pool of locks; a key always maps to the same lock."""

    def __init__(self, shards: int = 64) -> None:
        self._locks = [threading.Lock() for _ in range(max(int(shards), 1))]

    def for_key(self, key: Hashable) -> threading.Lock:
        return self._locks[hash(key) % len(self._locks)]


class HourlyAggregateMerger:
    def __init__(
        self,
        *,
        store: PartitionStore,
        provisioner: PartitionProvisioner,
        locks: KeyedLock | None = None,
    ) -> None:
        self._store = store
        self._provisioner = provisioner
        self._locks = locks or KeyedLock()

    def load(self, partition: str, key: Item) -> list[MinMaxMeasurement] | None:
        item = self._store.get_item(partition, key, AGGREGATE_ATTRIBUTES)
        if item is None:
            return None
        blob = item.get("measurements")
        if not isinstance(blob, (str, bytes)):
            raise SerializationFailure(
                f"Hourly aggregate {key[PARTITION_KEY]}@{key[SORT_KEY]} has no measurements"
            )
        return load_min_max(blob)

    def merge_hourly(
        self, message: SensorReadingMessage, sensor: Sensor, reading_timestamp: int
    ) -> bool:
        """Update the sensor's min/max row for the reading's hour. Returns True if written.

        The read-merge-write runs under the key's lock. A failed lookup or write releases
        the lock, provisions (or waits on) the partition and retries the whole merge once,
        so a settle wait never blocks other keys sharing the lock.
        """
        partition = hourly_partition(reading_timestamp)
        bucket = hour_bucket(reading_timestamp)
        key: Item = {PARTITION_KEY: sensor.record_id, SORT_KEY: bucket}
        lock = self._locks.for_key((sensor.record_id, bucket))

        try:
            with lock:
                return self._merge_locked(partition, key, message, sensor)
        except StoreFailure as e:
            logger.warning(f"Error while updating hourly aggregate in {partition}: {e}")

        self._provisioner.recover(partition)
        with lock:
            return self._merge_locked(partition, key, message, sensor)

    def _merge_locked(
        self, partition: str, key: Item, message: SensorReadingMessage, sensor: Sensor
    ) -> bool:
        existing = self.load(partition, key)
        result = merge_min_max(existing, message.measurements)
        if not result.dirty:
            logger.debug(f"Hourly aggregate for {key[PARTITION_KEY]}@{key[SORT_KEY]} unchanged")
            return False

        blob = dump_min_max(result.measurements)
        logger.debug(f"Hourly measurements for {key[PARTITION_KEY]}@{key[SORT_KEY]}: {blob}")
        self._store.put_item(
            partition,
            {
                **key,
                "account_id": sensor.account_id,
                "sensor_id": sensor.id,
                "measurements": blob,
            },
        )
        return True
