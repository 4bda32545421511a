from __future__ import annotations

import re

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_PARTITION_SETTLE_SECONDS = 30.0

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float:
    """Parse a duration string such as ``"30s"``, ``"1m30s"`` or ``"250ms"`` into seconds."""
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]
    if text == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos == 0:
        raise ValueError(f"invalid duration: {value!r}")
    return sign * total


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SENSORWRITER_",
        case_sensitive=False,
    )

    env: str = Field(default="development")
    debug: bool = Field(default=False)
    docs_enabled: bool = Field(default=True)
    log_level: str = Field(default="INFO")

    influx_url: AnyHttpUrl = Field(default="http://influxdb:8086")
    influx_token: str = Field(min_length=10)
    influx_org: str = Field(min_length=1)
    influx_measurement: str = Field(default="items", min_length=1, max_length=64)
    influx_timeout_ms: int = Field(default=10_000, ge=1000, le=120_000)

    partition_settle_time: str = Field(default="30s")
    throttle_fail_open: bool = Field(default=True)
    sensor_write_failure_proceeds: bool = Field(default=True)

    @property
    def is_production(self) -> bool:
        return self.env.lower() == "production"

    @property
    def partition_settle_seconds(self) -> float:
        try:
            seconds = parse_duration(self.partition_settle_time)
        except ValueError:
            return DEFAULT_PARTITION_SETTLE_SECONDS
        if seconds < 0:
            return DEFAULT_PARTITION_SETTLE_SECONDS
        return seconds


def load_settings() -> Settings:
    return Settings()
