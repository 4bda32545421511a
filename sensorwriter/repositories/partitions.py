from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable

from sensorwriter.core.errors import PartitionMissing, StoreFailure
from sensorwriter.repositories.base import TIMESERIES_KEY_SCHEMA, Item, KeySchema, PartitionStore

logger = logging.getLogger(__name__)

READINGS_PREFIX = "readings"
HOURLY_READINGS_PREFIX = "hourly_readings"
PARTITION_MONTH_FORMAT = "%Y-%m"
SECONDS_PER_HOUR = 3600

Sleeper = Callable[[float], None]


def _month(timestamp: int) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(PARTITION_MONTH_FORMAT)


def readings_partition(timestamp: int) -> str:
    return f"{READINGS_PREFIX}_{_month(timestamp)}"


def hourly_partition(timestamp: int) -> str:
    return f"{HOURLY_READINGS_PREFIX}_{_month(timestamp)}"


def hour_bucket(timestamp: int) -> int:
    return timestamp - timestamp % SECONDS_PER_HOUR


class PartitionProvisioner:
    """Creates month partitions on demand and retries the operation that found them missing.

    A freshly created partition may not accept writes straight away, so every creation
    is followed by a fixed settle wait. ``sleep`` is injectable so tests can skip it.
    """

    def __init__(
        self,
        *,
        store: PartitionStore,
        settle_seconds: float,
        sleep: Sleeper = time.sleep,
    ) -> None:
        self._store = store
        self._settle_seconds = max(float(settle_seconds), 0.0)
        self._sleep = sleep

    @property
    def settle_seconds(self) -> float:
        return self._settle_seconds

    def settle(self) -> None:
        logger.info(f"Waiting {self._settle_seconds:g}s for partition to settle")
        self._sleep(self._settle_seconds)
        logger.info("Finished waiting, will resume processing")

    def ensure_partition(self, name: str, key_schema: KeySchema = TIMESERIES_KEY_SCHEMA) -> bool:
        """Create ``name`` if it does not exist. Returns True when it was created."""
        if self._store.partition_exists(name):
            return False

        logger.info(f"Partition doesn't exist, will create it: {name}")
        try:
            self._store.create_partition(name, key_schema)
        except StoreFailure as e:
            raise PartitionMissing(
                f"Partition {name} is missing and could not be created: {e}", partition=name
            ) from e
        self.settle()
        return True

    def recover(self, name: str) -> bool:
        """Prepare ``name`` for a retry after a failed operation.

        Returns True when the partition had to be created, in which case it holds no items.
        """
        if self.ensure_partition(name):
            return True
        logger.info(f"Partition {name} exists, will wait in case it is being created")
        self.settle()
        return False

    def put_with_provisioning(self, partition: str, item: Item) -> None:
        try:
            self._store.put_item(partition, item)
            return
        except StoreFailure as e:
            logger.warning(f"Encountered error while writing to {partition}: {e}")

        self.recover(partition)
        logger.info(f"Attempting to write to {partition} again")
        self._store.put_item(partition, item)
