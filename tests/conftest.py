from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from sensorwriter.api import deps
from sensorwriter.core.config import Settings
from sensorwriter.factory import create_app
from sensorwriter.services.pipeline import SensorReadingPipeline
from tests.fakes import FakePartitionStore, RecordingSleeper, add_relay


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        _env_file=None,
        env="test",
        debug=True,
        docs_enabled=False,
        log_level="DEBUG",
        influx_url="http://example.com:8086",
        influx_token="test-token-1234567890",
        influx_org="test",
        influx_timeout_ms=5000,
        partition_settle_time="30s",
    )


@pytest.fixture()
def store() -> FakePartitionStore:
    store = FakePartitionStore()
    add_relay(store, "relay-1", "acct-1")
    return store


@pytest.fixture()
def sleeper() -> RecordingSleeper:
    return RecordingSleeper()


@pytest.fixture()
def pipeline(
    store: FakePartitionStore, settings: Settings, sleeper: RecordingSleeper
) -> SensorReadingPipeline:
    return SensorReadingPipeline.build(store=store, settings=settings, sleep=sleeper)


@pytest.fixture()
def client(
    settings: Settings, store: FakePartitionStore, sleeper: RecordingSleeper
) -> TestClient:
    app = create_app(settings)
    app.dependency_overrides[deps.get_partition_store] = lambda: store
    app.dependency_overrides[deps.get_settle_sleeper] = lambda: sleeper
    with TestClient(app) as client:
        yield client
