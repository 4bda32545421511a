from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from sensorwriter.core.errors import SerializationFailure


class Measurement(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=64)
    value: float
    unit: str = ""

    @field_validator("value")
    @classmethod
    def _finite_value(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("Measurement value must be a finite number.")
        return v


class MinMaxMeasurement(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    min: Measurement
    max: Measurement


class SensorReadingMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    relay_id: str = Field(min_length=1)
    sensor_id: str = Field(min_length=1)
    reading_timestamp: int = Field(ge=0)
    reporting_timestamp: int = Field(ge=0)
    measurements: list[Measurement] = Field(default_factory=list)


class WriteReadingResponse(BaseModel):
    status: str


_measurements_adapter = TypeAdapter(list[Measurement])
_min_max_adapter = TypeAdapter(list[MinMaxMeasurement])


def dump_measurements(measurements: list[Measurement]) -> str:
    return _measurements_adapter.dump_json(measurements).decode()


def dump_min_max(measurements: list[MinMaxMeasurement]) -> str:
    return _min_max_adapter.dump_json(measurements).decode()


def load_min_max(blob: str | bytes) -> list[MinMaxMeasurement]:
    try:
        return _min_max_adapter.validate_json(blob)
    except ValidationError as e:
        raise SerializationFailure(f"Malformed hourly aggregate: {e}") from e
