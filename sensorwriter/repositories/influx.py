from __future__ import annotations

from typing import Any

import urllib3
from influxdb_client import InfluxDBClient, Point, WritePrecision
from influxdb_client.client.exceptions import InfluxDBError
from influxdb_client.client.write_api import SYNCHRONOUS
from influxdb_client.rest import ApiException

from sensorwriter.core.errors import TransientStoreFailure
from sensorwriter.repositories.base import PARTITION_KEY, SORT_KEY, Item, KeySchema
from sensorwriter.repositories.flux import epoch_to_rfc3339, flux_str, flux_str_list

# Sort keys are epoch seconds; anything stored lies inside this window.
MAX_SORT_KEY = 2**32

_CLIENT_ERRORS = (ApiException, InfluxDBError, urllib3.exceptions.HTTPError)
_RECORD_META_COLUMNS = {"result", "table"}


class InfluxPartitionStore:
    """Partitioned key-value store on top of InfluxDB 2.x.

    Each partition is a bucket. An item is one point in ``measurement``, tagged with its
    partition key and stamped with its sort key (second precision). Partitions without a
    sort key store every item at the epoch, so a rewrite replaces the previous fields.
    """

    def __init__(
        self,
        *,
        client: InfluxDBClient,
        org: str,
        measurement: str,
    ) -> None:
        self._client = client
        self._org = org
        self._measurement = measurement

    def ping(self) -> None:
        try:
            healthy = self._client.ping()
        except _CLIENT_ERRORS as e:
            raise TransientStoreFailure(f"InfluxDB ping failed: {e}") from e
        if not healthy:
            raise TransientStoreFailure("InfluxDB ping failed")

    def get_item(
        self,
        partition: str,
        key: Item,
        attributes: list[str] | None = None,
    ) -> Item | None:
        sort_value = key.get(SORT_KEY)
        start = int(sort_value) if sort_value is not None else 0
        query = self._select(
            partition,
            str(key[PARTITION_KEY]),
            start=start,
            stop=start + 1,
            attributes=attributes,
        )
        query += "  |> limit(n: 1)\n"
        rows = self._run_query(partition, query)
        return rows[0] if rows else None

    def put_item(self, partition: str, item: Item) -> None:
        point = Point(self._measurement).tag(PARTITION_KEY, str(item[PARTITION_KEY]))
        for name, value in item.items():
            if name in (PARTITION_KEY, SORT_KEY) or value is None:
                continue
            point = point.field(name, value)
        point = point.time(int(item.get(SORT_KEY) or 0), WritePrecision.S)

        write_api = self._client.write_api(write_options=SYNCHRONOUS)
        try:
            write_api.write(bucket=partition, org=self._org, record=point)
        except _CLIENT_ERRORS as e:
            raise TransientStoreFailure(
                f"Write to {partition} failed: {e}", partition=partition
            ) from e

    def query(
        self,
        partition: str,
        partition_key: str,
        *,
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Item]:
        query = self._select(
            partition, partition_key, start=0, stop=MAX_SORT_KEY, descending=descending
        )
        if limit is not None:
            query += f"  |> limit(n: {int(limit)})\n"
        return self._run_query(partition, query)

    def partition_exists(self, name: str) -> bool:
        try:
            bucket = self._client.buckets_api().find_bucket_by_name(name)
        except _CLIENT_ERRORS as e:
            raise TransientStoreFailure(
                f"Listing partitions at {name} failed: {e}", partition=name
            ) from e
        return bucket is not None

    def create_partition(self, name: str, key_schema: KeySchema) -> None:
        description = f"partition_key={key_schema.partition_key}"
        if key_schema.sort_key is not None:
            description += f" sort_key={key_schema.sort_key}"
        try:
            self._client.buckets_api().create_bucket(
                bucket_name=name, org=self._org, description=description
            )
        except _CLIENT_ERRORS as e:
            raise TransientStoreFailure(
                f"Creating partition {name} failed: {e}", partition=name
            ) from e

    def _select(
        self,
        partition: str,
        partition_key: str,
        *,
        start: int,
        stop: int,
        attributes: list[str] | None = None,
        descending: bool = True,
    ) -> str:
        query = f"""
from(bucket: {flux_str(partition)})
  |> range(start: time(v: {flux_str(epoch_to_rfc3339(start))}), stop: time(v: {flux_str(epoch_to_rfc3339(stop))}))
  |> filter(fn: (r) => r["_measurement"] == {flux_str(self._measurement)})
  |> filter(fn: (r) => r[{flux_str(PARTITION_KEY)}] == {flux_str(partition_key)})
"""
        if attributes:
            query += (
                f'  |> filter(fn: (r) => contains(value: r["_field"], set: {flux_str_list(attributes)}))\n'
            )
        query += f"""  |> pivot(rowKey: ["_time"], columnKey: ["_field"], valueColumn: "_value")
  |> group()
  |> sort(columns: ["_time"], desc: {"true" if descending else "false"})
"""
        return query

    def _run_query(self, partition: str, query: str) -> list[Item]:
        query_api = self._client.query_api()
        try:
            tables = query_api.query(query=query, org=self._org)
        except _CLIENT_ERRORS as e:
            raise TransientStoreFailure(
                f"Query on {partition} failed: {e}", partition=partition
            ) from e

        items: list[Item] = []
        for table in tables:
            for record in table.records:
                items.append(_record_to_item(record.values, record.get_time()))
        return items


def _record_to_item(values: dict[str, Any], ts: Any) -> Item:
    item: Item = {
        name: value
        for name, value in values.items()
        if not name.startswith("_") and name not in _RECORD_META_COLUMNS
    }
    if ts is not None:
        item[SORT_KEY] = int(ts.timestamp())
    return item
