from __future__ import annotations

from influxdb_client import InfluxDBClient

from sensorwriter.core.config import Settings
from sensorwriter.repositories.influx import InfluxPartitionStore


def create_influx_client(settings: Settings) -> InfluxDBClient:
    # Partition creation goes through the buckets API, which needs the org on the client.
    return InfluxDBClient(
        url=str(settings.influx_url),
        token=settings.influx_token,
        org=settings.influx_org,
        timeout=settings.influx_timeout_ms,
    )


def create_partition_store(client: InfluxDBClient, settings: Settings) -> InfluxPartitionStore:
    return InfluxPartitionStore(
        client=client,
        org=settings.influx_org,
        measurement=settings.influx_measurement,
    )
