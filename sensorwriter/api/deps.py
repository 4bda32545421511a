from __future__ import annotations

import time
from typing import Annotated

from fastapi import Depends, Request

from sensorwriter.core.config import Settings
from sensorwriter.db.influx import create_partition_store
from sensorwriter.repositories.base import PartitionStore
from sensorwriter.repositories.partitions import Sleeper
from sensorwriter.services.aggregates import KeyedLock
from sensorwriter.services.pipeline import SensorReadingPipeline


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_partition_store(
    request: Request, settings: Annotated[Settings, Depends(get_settings)]
) -> PartitionStore:
    return create_partition_store(request.app.state.influx_client, settings)


def get_settle_sleeper() -> Sleeper:
    return time.sleep


def get_aggregate_locks(request: Request) -> KeyedLock:
    return request.app.state.aggregate_locks


def get_pipeline(
    store: Annotated[PartitionStore, Depends(get_partition_store)],
    settings: Annotated[Settings, Depends(get_settings)],
    sleep: Annotated[Sleeper, Depends(get_settle_sleeper)],
    locks: Annotated[KeyedLock, Depends(get_aggregate_locks)],
) -> SensorReadingPipeline:
    return SensorReadingPipeline.build(store=store, settings=settings, sleep=sleep, locks=locks)
