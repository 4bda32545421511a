from __future__ import annotations

from dataclasses import dataclass

STATE_ACTIVE = "active"
DEFAULT_SAMPLE_FREQUENCY = 60


@dataclass(frozen=True)
class Relay:
    id: str
    account_id: str
    name: str
    state: str

    @property
    def is_active(self) -> bool:
        return self.state == STATE_ACTIVE


@dataclass(frozen=True)
class Sensor:
    id: str
    account_id: str
    name: str
    state: str
    sample_frequency: int = DEFAULT_SAMPLE_FREQUENCY
    location_enabled: bool = False
    latitude: float = 0.0
    longitude: float = 0.0

    @property
    def record_id(self) -> str:
        return f"{self.account_id}:{self.id}"

    @property
    def has_location(self) -> bool:
        # Zero is treated as an unset coordinate.
        return self.location_enabled and self.latitude != 0 and self.longitude != 0
