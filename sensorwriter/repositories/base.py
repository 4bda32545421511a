from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

PARTITION_KEY = "id"
SORT_KEY = "timestamp"

Item = dict[str, Any]


@dataclass(frozen=True)
class KeySchema:
    partition_key: str = PARTITION_KEY
    sort_key: str | None = SORT_KEY


ENTITY_KEY_SCHEMA = KeySchema(sort_key=None)
TIMESERIES_KEY_SCHEMA = KeySchema()


class PartitionStore(Protocol):
    def ping(self) -> None: ...

    def get_item(
        self,
        partition: str,
        key: Item,
        attributes: list[str] | None = None,
    ) -> Item | None: ...

    def put_item(self, partition: str, item: Item) -> None: ...

    def query(
        self,
        partition: str,
        partition_key: str,
        *,
        descending: bool = True,
        limit: int | None = None,
    ) -> list[Item]: ...

    def partition_exists(self, name: str) -> bool: ...

    def create_partition(self, name: str, key_schema: KeySchema) -> None: ...
